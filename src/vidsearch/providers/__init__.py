"""Text encoder providers."""

from __future__ import annotations

from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import ConfigError
from vidsearch.providers.base import EmbedderProvider
from vidsearch.providers.local import LocalEmbedder
from vidsearch.providers.openai import OpenAIEmbedder


def get_embedder(config: VSConfig) -> EmbedderProvider:
    """Build the encoder selected by ``config.provider``."""
    if config.provider == "local":
        return LocalEmbedder(config)
    if config.provider in ("openai", "gemini", ""):
        if not config.embed_model:
            raise ConfigError(f"No embed_model configured for provider {config.provider!r}")
        return OpenAIEmbedder(config)
    raise ConfigError(f"Unknown provider: {config.provider!r}")


__all__ = ["EmbedderProvider", "LocalEmbedder", "OpenAIEmbedder", "get_embedder"]
