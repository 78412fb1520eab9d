"""Shared fixtures: a deterministic concept encoder and a catalog sample."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import EncodingError
from vidsearch.providers.base import EmbedderProvider
from vidsearch.search.service import SearchService

# Words that share an axis count as "semantically similar"
CONCEPTS = {
    "cat": 0, "cats": 0, "kitten": 0,
    "piano": 1, "music": 1, "song": 1, "guitar": 1,
    "dog": 2, "dogs": 2, "puppy": 2,
    "beach": 3, "running": 3, "ocean": 3, "surf": 3,
    "cooking": 4, "recipe": 4, "pasta": 4,
    "tutorial": 5, "howto": 5,
    "travel": 6, "japan": 6,
}
DIM = 8


class FakeEncoder(EmbedderProvider):
    """Bag-of-concepts encoder: each known word adds 1.0 on its concept axis."""

    name = "fake"

    def __init__(self, dim: int = DIM, fail_on: tuple[str, ...] = (), delay: float = 0.0):
        self._dim = dim
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[str] = []
        self.loaded = False

    @property
    def model(self) -> str:
        return "fake-concepts"

    def load(self) -> None:
        self.loaded = True

    def embed(self, texts: list[str]) -> list[list[float]]:
        out = []
        for text in texts:
            self.calls.append(text)
            if any(marker in text for marker in self.fail_on):
                raise EncodingError(f"refusing to encode {text!r}", provider=self.name)
            if self.delay:
                time.sleep(self.delay)
            vec = [0.0] * self._dim
            for word in text.lower().split():
                idx = CONCEPTS.get(word.strip(".,!?:"))
                if idx is not None:
                    vec[idx] += 1.0
            out.append(vec)
        return out

    @property
    def dim(self) -> int:
        return self._dim


@pytest.fixture()
def config(tmp_path: Path) -> VSConfig:
    return VSConfig(
        provider="openai",
        api_key="sk-test",
        db_path=tmp_path / "catalog.db",
        index_path=tmp_path / "video_embeddings.json",
        batch_delay_sec=0.0,
    )


@pytest.fixture()
def encoder() -> FakeEncoder:
    return FakeEncoder()


@pytest.fixture()
def service(config: VSConfig, encoder: FakeEncoder) -> SearchService:
    """Constructed but not initialized; tests drive the lifecycle."""
    return SearchService(config, encoder)


@pytest.fixture()
def videos() -> list[dict]:
    return [
        {
            "id": 1,
            "title": "Cat playing piano",
            "description": "",
            "category": "Music",
            "tags": '["cat", "piano"]',
            "views": 1200,
            "like_count": 40,
            "duration": 95,
            "transcript": None,
            "created_at": "2024-01-03 10:00:00",
        },
        {
            "id": 2,
            "title": "Dog running on beach",
            "description": "A puppy at the ocean",
            "category": "Pets",
            "tags": '["dog", "beach"]',
            "views": 5400,
            "like_count": 310,
            "duration": 60,
            "transcript": "",
            "created_at": "2024-01-01 09:00:00",
        },
        {
            "id": 3,
            "title": "Pasta recipe tutorial",
            "description": "Cooking fresh pasta",
            "category": "Food",
            "tags": '["cooking"]',
            "views": 300,
            "like_count": 12,
            "duration": 600,
            "transcript": "today we make pasta",
            "created_at": "2024-01-02 08:00:00",
        },
    ]
