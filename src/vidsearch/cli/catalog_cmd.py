"""vidsearch catalog commands: seed and inspect the video catalog."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import ValidationError

from vidsearch.cli.output import error, output_json, progress
from vidsearch.core.config import get_config
from vidsearch.db.repository import Repository

catalog_app = typer.Typer()


@catalog_app.command("import")
def import_cmd(
    path: str = typer.Argument(..., help="JSON file holding a list of video objects"),
    db: str = typer.Option(None, "--db", help="Catalog database path override"),
) -> None:
    """Load videos from a JSON array into the catalog."""
    source = Path(path).expanduser()
    try:
        items = json.loads(source.read_text())
    except (OSError, json.JSONDecodeError) as e:
        error(f"Cannot read {source}: {e}")
        raise typer.Exit(1)
    if not isinstance(items, list):
        error(f"{source} must contain a JSON array of videos")
        raise typer.Exit(1)

    config = get_config(db_path=Path(db) if db else None)
    repo = Repository(config.db_path)
    try:
        ids = repo.import_videos(items)
    except ValidationError as e:
        error(f"Invalid video entry: {e}")
        raise typer.Exit(1)
    finally:
        repo.close()

    progress(f"Imported {len(ids)} video(s) into {config.db_path}")
    output_json({"success": True, "imported": len(ids), "video_ids": ids})


@catalog_app.command("list")
def list_cmd(
    db: str = typer.Option(None, "--db", help="Catalog database path override"),
) -> None:
    """List all videos in the catalog."""
    config = get_config(db_path=Path(db) if db else None)
    repo = Repository(config.db_path)

    try:
        videos = repo.list_videos()
        output_json({
            "videos": [v.model_dump() for v in videos],
            "total": len(videos),
        })
    finally:
        repo.close()
