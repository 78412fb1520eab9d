"""Read/write access to the video catalog.

The search core only reads from here; writes exist for seeding the catalog.
"""

from __future__ import annotations

import json
from pathlib import Path

from vidsearch.core.exceptions import NotFoundError
from vidsearch.db.connection import get_connection
from vidsearch.db.models import VideoListItem, VideoRecord
from vidsearch.db.schema import migrate

_SEARCH_FIELDS = (
    "id, title, description, category, tags, views, like_count, duration, transcript"
)


def _serialize_tags(tags: str | list[str] | None) -> str | None:
    if tags is None or isinstance(tags, str):
        return tags
    return json.dumps(tags)


class Repository:
    def __init__(self, db_path: Path | None = None):
        self.conn = get_connection(db_path)
        migrate(self.conn)

    def close(self) -> None:
        self.conn.close()

    # --- Writes ---

    def insert_video(self, video: VideoRecord) -> int:
        cur = self.conn.execute(
            """INSERT INTO videos (id, title, description, category, tags, views,
               like_count, duration, transcript, status, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, COALESCE(?, datetime('now')))""",
            (
                video.id, video.title, video.description, video.category,
                _serialize_tags(video.tags), video.views, video.like_count,
                video.duration, video.transcript, video.status, video.created_at,
            ),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def import_videos(self, items: list[dict]) -> list[int]:
        """Insert raw dicts (e.g. from a JSON export). Tags may be a list."""
        ids = []
        for item in items:
            data = dict(item)
            data["tags"] = _serialize_tags(data.get("tags"))
            ids.append(self.insert_video(VideoRecord(**data)))
        return ids

    def set_status(self, video_id: int, status: str) -> None:
        self.conn.execute("UPDATE videos SET status = ? WHERE id = ?", (status, video_id))
        self.conn.commit()

    # --- Reads ---

    def get_published_video(self, video_id: int) -> dict:
        """Fetch the fields the search core embeds, for one published video."""
        row = self.conn.execute(
            f"SELECT {_SEARCH_FIELDS} FROM videos WHERE id = ? AND status = 'published'",
            (video_id,),
        ).fetchone()
        if not row:
            raise NotFoundError(f"Video not found: {video_id}")
        return dict(row)

    def list_published_videos(self, category: str | None = None) -> list[dict]:
        """Full rows of published videos, optionally restricted to a category."""
        if category and category != "all":
            rows = self.conn.execute(
                "SELECT * FROM videos WHERE status = 'published' AND category = ? ORDER BY id",
                (category,),
            ).fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM videos WHERE status = 'published' ORDER BY id"
            ).fetchall()
        return [dict(r) for r in rows]

    def get_published_videos_by_ids(self, video_ids: list[int]) -> list[dict]:
        if not video_ids:
            return []
        placeholders = ",".join("?" for _ in video_ids)
        rows = self.conn.execute(
            f"SELECT * FROM videos WHERE id IN ({placeholders}) AND status = 'published'",
            video_ids,
        ).fetchall()
        return [dict(r) for r in rows]

    def list_videos(self) -> list[VideoListItem]:
        rows = self.conn.execute(
            "SELECT id, title, category, status, views FROM videos ORDER BY id"
        ).fetchall()
        return [
            VideoListItem(
                video_id=r["id"],
                title=r["title"],
                category=r["category"],
                status=r["status"],
                views=r["views"],
            )
            for r in rows
        ]
