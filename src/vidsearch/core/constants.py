"""Default model names and constants."""

from pathlib import Path

# Embedding models
DEFAULT_PROVIDER = "openai"
DEFAULT_EMBED_MODEL = "text-embedding-3-small"
DEFAULT_LOCAL_MODEL = "all-MiniLM-L6-v2"  # 384-dim, runs without an API key

# Paths
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "vidsearch"
DEFAULT_DB_PATH = DEFAULT_CONFIG_DIR / "catalog.db"
DEFAULT_INDEX_PATH = DEFAULT_CONFIG_DIR / "video_embeddings.json"

# Config file
CONFIG_FILE_PATH = DEFAULT_CONFIG_DIR / "config.json"

# Rebuild pipeline
DEFAULT_BATCH_SIZE = 10
DEFAULT_SAVE_EVERY_BATCHES = 5  # flush every 50 videos at the default batch size
DEFAULT_BATCH_DELAY_SEC = 0.0
DEFAULT_ENCODE_TIMEOUT_SEC = 30.0

# Search
DEFAULT_SEARCH_LIMIT = 20
DEFAULT_SEMANTIC_THRESHOLD = 0.7
DEFAULT_HYBRID_SEMANTIC_THRESHOLD = 0.7
DEFAULT_HYBRID_MIN_SCORE = 0.3
DEFAULT_SEMANTIC_WEIGHT = 0.7
DEFAULT_KEYWORD_WEIGHT = 0.3

# Keyword scoring bonuses
KEYWORD_TEXT_BONUS = 1.0
KEYWORD_TITLE_BONUS = 2.0
KEYWORD_CATEGORY_BONUS = 1.5

# Result post-sorting (applied after relevance ranking)
SORT_CHOICES = ("relevance", "views", "likes", "newest")

# Provider presets
PROVIDER_PRESETS: dict[str, dict[str, str]] = {
    "openai": {
        "api_base_url": "https://api.openai.com/v1",
        "embed_model": "text-embedding-3-small",
    },
    "gemini": {
        "api_base_url": "https://generativelanguage.googleapis.com/v1beta/openai/",
        "embed_model": "text-embedding-004",
    },
    "local": {
        "api_base_url": "",
        "embed_model": "",
        "local_model": DEFAULT_LOCAL_MODEL,
    },
}
