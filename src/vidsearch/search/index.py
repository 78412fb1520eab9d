"""In-memory embedding index with atomic JSON persistence."""

from __future__ import annotations

import json
import os
import sys
import tempfile
import threading
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from vidsearch.core.exceptions import DimensionMismatchError, IndexIOError
from vidsearch.search.models import EmbeddingRecord


def _key(video_id: int | str) -> str:
    return str(video_id)


class EmbeddingIndex:
    """Maps str(video_id) to an EmbeddingRecord.

    Records are replaced whole, never patched. Iteration order is insertion
    order, which is also the tie-break order for equal similarity scores.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: dict[str, EmbeddingRecord] = {}
        self._dim: int | None = None
        self._save_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, video_id: object) -> bool:
        return _key(video_id) in self._records

    @property
    def dim(self) -> int | None:
        return self._dim

    def get(self, video_id: int | str) -> EmbeddingRecord | None:
        return self._records.get(_key(video_id))

    def upsert(self, video_id: int | str, record: EmbeddingRecord) -> None:
        self.check_dim(len(record.embedding))
        self._records[_key(video_id)] = record
        if self._dim is None:
            self._dim = len(record.embedding)

    def remove(self, video_id: int | str) -> bool:
        removed = self._records.pop(_key(video_id), None) is not None
        if not self._records:
            self._dim = None
        return removed

    def clear(self) -> None:
        self._records = {}
        self._dim = None

    def entries(self) -> Iterator[tuple[str, EmbeddingRecord]]:
        """Iterate over a snapshot taken at call time."""
        return iter(list(self._records.items()))

    def check_dim(self, size: int) -> None:
        if size == 0:
            raise DimensionMismatchError(None, 0)
        if self._dim is not None and size != self._dim:
            raise DimensionMismatchError(self._dim, size)

    # --- Persistence ---

    def load(self) -> int:
        """Replace in-memory state with the file contents. Returns record count.

        A missing or unreadable file leaves the index empty; the service stays
        usable and the index can be rebuilt.
        """
        self.clear()
        if not self.path.exists():
            print(f"No existing embeddings file at {self.path}, starting fresh", file=sys.stderr)
            return 0

        try:
            raw = json.loads(self.path.read_text())
            if not isinstance(raw, dict):
                raise ValueError(f"expected a JSON object, got {type(raw).__name__}")
            records: dict[str, EmbeddingRecord] = {}
            dim: int | None = None
            for key, value in raw.items():
                int(key)  # keys are str(video_id)
                record = EmbeddingRecord.model_validate(value)
                size = len(record.embedding)
                if size == 0 or (dim is not None and size != dim):
                    raise ValueError(f"record {key} has {size} dimensions, expected {dim}")
                dim = size
                records[key] = record
        except (OSError, ValueError, ValidationError) as e:
            print(
                f"Warning: embeddings file {self.path} is unreadable ({e}), starting fresh",
                file=sys.stderr,
            )
            return 0

        self._records = records
        self._dim = dim
        print(f"Loaded {len(records)} video embeddings", file=sys.stderr)
        return len(records)

    def save(self) -> None:
        """Write the whole index to a temp file, then rename over the target."""
        with self._save_lock:
            payload = {key: record.model_dump() for key, record in self.entries()}
            tmp_name: str | None = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
                tmp_name = None
            except OSError as e:
                raise IndexIOError(f"Failed to save embeddings to {self.path}", details=str(e)) from e
            finally:
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)
