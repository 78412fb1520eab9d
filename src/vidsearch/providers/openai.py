"""OpenAI-compatible embedding provider."""

from __future__ import annotations

import os

from openai import OpenAI

from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import ConfigError, EncodingError
from vidsearch.providers.base import EmbedderProvider


def _resolve_api_key(config: VSConfig) -> str:
    """Resolve API key from VIDSEARCH_API_KEY, then OPENAI_API_KEY."""
    configured = (config.api_key or "").strip()
    if configured:
        return configured
    return os.environ.get("OPENAI_API_KEY", "").strip()


def _client(config: VSConfig) -> OpenAI:
    api_key = _resolve_api_key(config)
    if not api_key:
        raise ConfigError(
            "No API key configured",
            details="Set VIDSEARCH_API_KEY or OPENAI_API_KEY, or use VIDSEARCH_PROVIDER=local",
        )
    return OpenAI(base_url=config.api_base_url, api_key=api_key)


class OpenAIEmbedder(EmbedderProvider):
    name = "openai"

    def __init__(self, config: VSConfig, client: OpenAI | None = None):
        self.config = config
        self._client = client
        self._dim: int | None = None

    @property
    def model(self) -> str:
        return self.config.embed_model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = _client(self.config)
        return self._client

    def load(self) -> None:
        # Raises ConfigError here when no API key is configured
        if self._client is None:
            self._client = _client(self.config)

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        client = self.client
        try:
            response = client.embeddings.create(
                model=self.config.embed_model,
                input=texts,
                encoding_format="float",
            )
        except Exception as e:
            raise EncodingError(f"Embedding failed: {e}", provider=self.name) from e
        vecs = [list(item.embedding) for item in response.data]
        if vecs and self._dim is None:
            self._dim = len(vecs[0])
        return vecs

    @property
    def dim(self) -> int:
        if self._dim is None:
            # Embed a dummy string to discover dimensionality
            self._dim = len(self.embed_one("dimension check"))
        return self._dim
