"""Configuration via environment variables, config.json, and .env files."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidsearch.core.constants import (
    CONFIG_FILE_PATH,
    DEFAULT_BATCH_DELAY_SEC,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DB_PATH,
    DEFAULT_EMBED_MODEL,
    DEFAULT_ENCODE_TIMEOUT_SEC,
    DEFAULT_HYBRID_MIN_SCORE,
    DEFAULT_HYBRID_SEMANTIC_THRESHOLD,
    DEFAULT_INDEX_PATH,
    DEFAULT_KEYWORD_WEIGHT,
    DEFAULT_LOCAL_MODEL,
    DEFAULT_PROVIDER,
    DEFAULT_SAVE_EVERY_BATCHES,
    DEFAULT_SEARCH_LIMIT,
    DEFAULT_SEMANTIC_THRESHOLD,
    DEFAULT_SEMANTIC_WEIGHT,
)

# Keys that config.json may set. Paths come only from env vars or CLI
# overrides.
_FILE_KEYS = (
    "provider",
    "api_base_url",
    "api_key",
    "embed_model",
    "local_model",
    "batch_size",
    "save_every_batches",
    "batch_delay_sec",
    "encode_timeout_sec",
    "default_limit",
    "semantic_threshold",
    "hybrid_semantic_threshold",
    "hybrid_min_score",
    "semantic_weight",
    "keyword_weight",
)


def _load_config_file() -> dict:
    """Read ~/.config/vidsearch/config.json if it exists, return as dict."""
    if not CONFIG_FILE_PATH.exists():
        return {}
    try:
        data = json.loads(CONFIG_FILE_PATH.read_text())
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict) -> Path:
    """Write config dict to ~/.config/vidsearch/config.json. Returns the path."""
    CONFIG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE_PATH.write_text(json.dumps(data, indent=2) + "\n")
    return CONFIG_FILE_PATH


class VSConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VIDSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Provider: "openai" (any OpenAI-compatible endpoint) or "local"
    provider: str = Field(default=DEFAULT_PROVIDER)

    # API
    api_base_url: str = Field(default="https://api.openai.com/v1")
    api_key: str = Field(default="")

    # Models
    embed_model: str = Field(default=DEFAULT_EMBED_MODEL)
    local_model: str = Field(default=DEFAULT_LOCAL_MODEL)

    # Storage
    db_path: Path = Field(default=DEFAULT_DB_PATH)
    index_path: Path = Field(default=DEFAULT_INDEX_PATH)

    # Rebuild pipeline
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    save_every_batches: int = Field(default=DEFAULT_SAVE_EVERY_BATCHES, ge=1)
    batch_delay_sec: float = Field(default=DEFAULT_BATCH_DELAY_SEC, ge=0)
    encode_timeout_sec: float = Field(default=DEFAULT_ENCODE_TIMEOUT_SEC, gt=0)

    # Search
    default_limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=0)
    semantic_threshold: float = Field(default=DEFAULT_SEMANTIC_THRESHOLD)
    hybrid_semantic_threshold: float = Field(default=DEFAULT_HYBRID_SEMANTIC_THRESHOLD)
    hybrid_min_score: float = Field(default=DEFAULT_HYBRID_MIN_SCORE)
    semantic_weight: float = Field(default=DEFAULT_SEMANTIC_WEIGHT)
    keyword_weight: float = Field(default=DEFAULT_KEYWORD_WEIGHT)


def get_config(
    db_path: Path | None = None,
    index_path: Path | None = None,
) -> VSConfig:
    """Create config with priority: env vars > config.json > defaults."""
    file_data = _load_config_file()

    # pydantic treats __init__ kwargs as highest priority, so only pass
    # config.json values whose env var is unset
    init_kwargs: dict = {}
    for key in _FILE_KEYS:
        env_name = f"VIDSEARCH_{key.upper()}"
        if key in file_data and env_name not in os.environ:
            init_kwargs[key] = file_data[key]

    config = VSConfig(**init_kwargs)

    if db_path is not None:
        config.db_path = db_path
    if index_path is not None:
        config.index_path = index_path
    return config
