"""Local sentence-transformers encoder: no API key needed.

The model is loaded by ``load()`` rather than on construction so the service
can build its encoder cheaply and pay the load cost in ``initialize()``.
"""

from __future__ import annotations

from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import ConfigError, EncodingError
from vidsearch.providers.base import EmbedderProvider


class LocalEmbedder(EmbedderProvider):
    name = "local"

    def __init__(self, config: VSConfig):
        self.config = config
        self._model = None

    @property
    def model(self) -> str:
        return self.config.local_model

    def load(self) -> None:
        if self._model is not None:
            return
        try:
            from sentence_transformers import SentenceTransformer
        except ImportError as e:
            raise ConfigError(
                "sentence-transformers is not installed",
                details="pip install 'vidsearch[local]'",
            ) from e
        self._model = SentenceTransformer(self.config.local_model)

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        if self._model is None:
            self.load()
        try:
            vecs = self._model.encode(
                texts,
                normalize_embeddings=True,
                show_progress_bar=False,
                batch_size=64,
            )
        except Exception as e:
            raise EncodingError(f"Embedding failed: {e}", provider=self.name) from e
        return [[float(x) for x in v] for v in vecs]

    @property
    def dim(self) -> int:
        if self._model is None:
            self.load()
        return int(self._model.get_sentence_embedding_dimension())
