"""Abstract text encoder interface: all providers are swappable."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vidsearch.core.exceptions import EncodingError


class EmbedderProvider(ABC):
    """Maps text to fixed-length, cosine-comparable vectors."""

    name: str = "base"

    @property
    @abstractmethod
    def model(self) -> str:
        ...

    @abstractmethod
    def embed(self, texts: list[str]) -> list[list[float]]:
        ...

    @property
    @abstractmethod
    def dim(self) -> int:
        ...

    def load(self) -> None:
        """Prepare the encoder for use. Blocking; may be slow."""

    def embed_one(self, text: str) -> list[float]:
        vecs = self.embed([text])
        if not vecs:
            raise EncodingError("Encoder returned no vector", provider=self.name)
        return vecs[0]
