"""vidsearch: semantic and hybrid search over a video catalog."""

__version__ = "0.1.0"
