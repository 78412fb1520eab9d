"""SearchService: owns the embedding index and orchestrates encode/rank.

Construct once per process, ``await initialize()``, then pass the instance to
whatever handles requests. Lifecycle::

    UNINITIALIZED -> INITIALIZING -> READY
                                  \\-> FAILED
"""

from __future__ import annotations

import asyncio
import math
import sys
from collections.abc import Sequence
from enum import Enum
from typing import Any

from vidsearch.core.config import VSConfig
from vidsearch.core.exceptions import (
    DocumentBuildError,
    EmptyQueryError,
    EncodingError,
    IndexIOError,
    ServiceNotReadyError,
    VidSearchError,
)
from vidsearch.providers import get_embedder
from vidsearch.providers.base import EmbedderProvider
from vidsearch.search.document import VideoDocument, build_document_text
from vidsearch.search.hybrid import hybrid_rank
from vidsearch.search.index import EmbeddingIndex
from vidsearch.search.models import (
    EmbeddingRecord,
    HybridHit,
    ItemFailure,
    RebuildReport,
    RecordMetadata,
    SemanticHit,
)
from vidsearch.search.semantic import rank


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def _to_document(video: Any) -> VideoDocument:
    if isinstance(video, VideoDocument):
        return video
    return VideoDocument.from_record(video)


def _video_id(video: Any) -> int | None:
    if isinstance(video, dict):
        return video.get("id")
    return getattr(video, "id", None)


def require_query(query: str | None) -> str:
    q = (query or "").strip()
    if not q:
        raise EmptyQueryError("Query parameter is required")
    return q


class SearchService:
    def __init__(
        self,
        config: VSConfig,
        encoder: EmbedderProvider,
        index: EmbeddingIndex | None = None,
    ):
        self.config = config
        self.encoder = encoder
        self.index = index if index is not None else EmbeddingIndex(config.index_path)
        self.state = ServiceState.UNINITIALIZED
        self._key_locks: dict[str, asyncio.Lock] = {}

    # --- Lifecycle ---

    async def initialize(self) -> None:
        """Load the index from disk and warm the encoder.

        An index built with another vector size than the encoder produces is
        discarded (with a warning) so a rebuild can start over.
        """
        if self.state == ServiceState.READY:
            return
        self.state = ServiceState.INITIALIZING
        try:
            await asyncio.to_thread(self.index.load)
            await asyncio.to_thread(self.encoder.load)
            await self._check_encoder_dim()
        except Exception:
            self.state = ServiceState.FAILED
            raise
        self.state = ServiceState.READY

    async def _check_encoder_dim(self) -> None:
        if self.index.dim is None:
            return
        try:
            dim = await asyncio.to_thread(lambda: self.encoder.dim)
        except EncodingError as e:
            print(f"Warning: could not determine encoder dimensions: {e}", file=sys.stderr)
            return
        if dim != self.index.dim:
            print(
                f"Warning: index has {self.index.dim}-dim embeddings but encoder "
                f"{self.encoder.model} produces {dim}; discarding index, run a rebuild",
                file=sys.stderr,
            )
            self.index.clear()

    def _require_ready(self) -> None:
        if self.state != ServiceState.READY:
            raise ServiceNotReadyError(f"Search service is {self.state.value}")

    def status(self) -> dict:
        return {
            "state": self.state.value,
            "provider": self.encoder.name,
            "model": self.encoder.model,
            "index_path": str(self.index.path),
            "indexed_videos": len(self.index),
            "dim": self.index.dim,
        }

    # --- Internals ---

    def _lock_for(self, video_id: int | str) -> asyncio.Lock:
        key = str(video_id)
        lock = self._key_locks.get(key)
        if lock is None:
            lock = self._key_locks[key] = asyncio.Lock()
        return lock

    async def _encode(self, text: str) -> list[float]:
        timeout = self.config.encode_timeout_sec
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.encoder.embed_one, text), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            raise EncodingError(
                f"Encoder timed out after {timeout}s", provider=self.encoder.name
            ) from e
        except VidSearchError:
            raise
        except Exception as e:
            raise EncodingError(f"Encoder failed: {e}", provider=self.encoder.name) from e

    async def _embed(self, video: VideoDocument) -> EmbeddingRecord:
        vector = await self._encode(build_document_text(video))
        self.index.check_dim(len(vector))
        return EmbeddingRecord(
            embedding=vector,
            metadata=RecordMetadata(
                title=video.title,
                category=video.category,
                views=video.views,
                like_count=video.like_count,
            ),
        )

    async def _embed_item(self, video: Any) -> tuple[int, EmbeddingRecord]:
        doc = _to_document(video)
        return doc.id, await self._embed(doc)

    async def _save(self) -> None:
        try:
            await asyncio.to_thread(self.index.save)
        except IndexIOError as e:
            print(f"Error saving embeddings: {e} ({e.details})", file=sys.stderr)
            raise

    # --- Index mutation ---

    async def rebuild_all(self, videos: Sequence[Any]) -> RebuildReport:
        """Embed every video in fixed-size batches, best effort.

        Encodes within a batch run concurrently; the next batch starts only
        when the whole batch has finished. Item failures are logged and
        recorded in the report. Records for videos absent from ``videos`` are
        removed; an empty ``videos`` leaves the index untouched. The index is
        flushed every ``save_every_batches`` batches and once at the end.
        """
        self._require_ready()
        report = RebuildReport(total=len(videos))
        if not videos:
            return report

        batch_size = self.config.batch_size
        total_batches = math.ceil(len(videos) / batch_size)
        print(f"Generating embeddings for {len(videos)} videos...", file=sys.stderr)

        for batch_no, start in enumerate(range(0, len(videos), batch_size), start=1):
            batch = videos[start : start + batch_size]
            results = await asyncio.gather(
                *(self._embed_item(v) for v in batch), return_exceptions=True
            )

            for video, result in zip(batch, results):
                if isinstance(result, BaseException) and not isinstance(result, Exception):
                    raise result
                if isinstance(result, Exception):
                    self._record_failure(report, _video_id(video), result)
                    continue
                video_id, record = result
                try:
                    async with self._lock_for(video_id):
                        self.index.upsert(video_id, record)
                except VidSearchError as e:
                    self._record_failure(report, video_id, e)
                    continue
                report.embedded += 1

            report.batches = batch_no
            print(f"  Processed batch {batch_no}/{total_batches}", file=sys.stderr)

            if batch_no % self.config.save_every_batches == 0 and batch_no < total_batches:
                try:
                    await self._save()
                    report.saves += 1
                except IndexIOError:
                    pass  # logged by _save; the final save reports failure

            if self.config.batch_delay_sec and batch_no < total_batches:
                await asyncio.sleep(self.config.batch_delay_sec)

        report.pruned = await self._prune(videos)
        if report.pruned:
            print(f"  Removed {report.pruned} video(s) no longer in the catalog", file=sys.stderr)

        await self._save()
        report.saves += 1
        print(
            f"Finished generating embeddings: {report.embedded} embedded, "
            f"{len(report.failed)} failed",
            file=sys.stderr,
        )
        return report

    async def _prune(self, videos: Sequence[Any]) -> int:
        """Drop records whose video is absent from the rebuild input.

        Videos that were in the input but failed to embed keep their old record.
        """
        keep = {str(_video_id(v)) for v in videos}
        pruned = 0
        for key, _ in self.index.entries():
            if key in keep:
                continue
            async with self._lock_for(key):
                if self.index.remove(key):
                    pruned += 1
        return pruned

    @staticmethod
    def _record_failure(report: RebuildReport, video_id: int | None, error: Exception) -> None:
        print(f"  Warning: skipping video {video_id}: {error}", file=sys.stderr)
        report.failed.append(ItemFailure(video_id=video_id, error=str(error)))

    async def update_one(self, video: Any) -> EmbeddingRecord:
        """Re-embed one video and flush the index immediately."""
        self._require_ready()
        doc = _to_document(video)
        async with self._lock_for(doc.id):
            record = await self._embed(doc)
            self.index.upsert(doc.id, record)
            await self._save()
        return record

    async def remove_one(self, video_id: int) -> bool:
        """Drop a video from the index. Returns False if it was not indexed."""
        async with self._lock_for(video_id):
            removed = self.index.remove(video_id)
            if removed:
                await self._save()
        return removed

    # --- Search ---

    async def semantic_search(
        self,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> list[SemanticHit]:
        q = require_query(query)
        self._require_ready()
        vector = await self._encode(q.lower())
        return rank(
            vector,
            self.index,
            limit=self.config.default_limit if limit is None else limit,
            threshold=self.config.semantic_threshold if threshold is None else threshold,
        )

    async def hybrid_search(
        self,
        query: str,
        videos: Sequence[Any],
        semantic_weight: float | None = None,
        keyword_weight: float | None = None,
        limit: int | None = None,
    ) -> list[HybridHit]:
        q = require_query(query)
        if not videos:
            return []
        self._require_ready()

        candidates: list[VideoDocument] = []
        for video in videos:
            try:
                candidates.append(_to_document(video))
            except DocumentBuildError as e:
                print(f"  Warning: skipping video {_video_id(video)}: {e}", file=sys.stderr)
        if not candidates:
            return []

        vector = await self._encode(q.lower())
        return hybrid_rank(
            vector,
            q,
            candidates,
            self.index,
            semantic_weight=self.config.semantic_weight if semantic_weight is None else semantic_weight,
            keyword_weight=self.config.keyword_weight if keyword_weight is None else keyword_weight,
            limit=self.config.default_limit if limit is None else limit,
            semantic_threshold=self.config.hybrid_semantic_threshold,
            min_score=self.config.hybrid_min_score,
        )


def build_service(config: VSConfig, encoder: EmbedderProvider | None = None) -> SearchService:
    """Construct (but do not initialize) the process-wide search service."""
    return SearchService(config, encoder or get_embedder(config))


async def start_service(config: VSConfig, encoder: EmbedderProvider | None = None) -> SearchService:
    """Construct and initialize the service; the usual entry point."""
    service = build_service(config, encoder)
    await service.initialize()
    return service
