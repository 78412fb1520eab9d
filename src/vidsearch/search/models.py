"""Pydantic models for index records and search results."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordMetadata(BaseModel):
    title: str | None = None
    category: str | None = None
    views: int = 0
    like_count: int = 0
    updated_at: str = Field(default_factory=_utc_now)


class EmbeddingRecord(BaseModel):
    embedding: list[float]
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)


class SemanticHit(BaseModel):
    rank: int
    video_id: int
    similarity: float
    metadata: RecordMetadata


class HybridHit(BaseModel):
    rank: int
    video_id: int
    combined_score: float
    semantic_score: float
    keyword_score: float


class ItemFailure(BaseModel):
    video_id: int | None
    error: str


class RebuildReport(BaseModel):
    total: int = 0
    embedded: int = 0
    failed: list[ItemFailure] = Field(default_factory=list)
    batches: int = 0
    saves: int = 0
    pruned: int = 0
