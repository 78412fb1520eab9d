"""Pydantic models for catalog rows."""

from __future__ import annotations

from pydantic import BaseModel


class VideoRecord(BaseModel):
    id: int | None = None
    title: str
    description: str | None = None
    category: str | None = None
    tags: str | None = None  # JSON array, parsed at the search boundary
    views: int = 0
    like_count: int = 0
    duration: int = 0
    transcript: str | None = None
    status: str = "published"
    created_at: str | None = None


class VideoListItem(BaseModel):
    video_id: int
    title: str
    category: str | None
    status: str
    views: int
