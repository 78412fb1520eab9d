"""Render video metadata into the text blob that gets embedded."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, field_validator

from vidsearch.core.exceptions import DocumentBuildError


def parse_tags(raw: Any, video_id: int | None = None) -> list[str]:
    """Parse the catalog's serialized tags into an ordered list of strings.

    Accepts None/"" (no tags), a list of strings, or a JSON array string.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DocumentBuildError(
                "Malformed tags: not valid JSON", video_id=video_id, details=str(e)
            ) from e
    if not isinstance(raw, list):
        raise DocumentBuildError(
            f"Malformed tags: expected a list, got {type(raw).__name__}", video_id=video_id
        )
    for tag in raw:
        if not isinstance(tag, str):
            raise DocumentBuildError(
                f"Malformed tags: non-string tag {tag!r}", video_id=video_id
            )
    return list(raw)


class VideoDocument(BaseModel):
    id: int
    title: str | None = None
    description: str | None = None
    category: str | None = None
    transcript: str | None = None
    tags: list[str] = Field(default_factory=list)
    duration: int = Field(default=0, ge=0)
    views: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)

    @field_validator("duration", "views", "like_count", mode="before")
    @classmethod
    def _none_is_zero(cls, v: Any) -> Any:
        if v is None:
            return 0
        if isinstance(v, float):
            if not v.is_integer():
                raise ValueError(f"expected a whole number, got {v}")
            return int(v)
        return v

    @classmethod
    def from_record(cls, record: Any) -> VideoDocument:
        """Build from a catalog row (dict or model), parsing serialized tags."""
        data = record if isinstance(record, dict) else record.model_dump()
        video_id = data.get("id")
        try:
            return cls(
                id=video_id,
                title=data.get("title"),
                description=data.get("description"),
                category=data.get("category"),
                transcript=data.get("transcript"),
                tags=parse_tags(data.get("tags"), video_id=video_id),
                duration=data.get("duration"),
                views=data.get("views"),
                like_count=data.get("like_count"),
            )
        except ValueError as e:
            # pydantic.ValidationError is a ValueError
            raise DocumentBuildError(
                f"Invalid metadata for video {video_id}", video_id=video_id, details=str(e)
            ) from e


def build_document_text(video: VideoDocument) -> str:
    """Concatenate the non-empty fields in a fixed order, lower-cased."""
    parts = [
        video.title or "",
        video.description or "",
        video.category or "",
        video.transcript or "",
        " ".join(video.tags),
        f"duration: {video.duration}" if video.duration > 0 else "",
        f"popular with {video.views} views" if video.views > 0 else "",
    ]
    return " ".join(p for p in parts if p).lower()
