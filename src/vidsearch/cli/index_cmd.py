"""vidsearch index commands: rebuild, update, remove, status."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from vidsearch.cli.output import fail, output_json
from vidsearch.core.config import VSConfig, get_config
from vidsearch.core.exceptions import VidSearchError
from vidsearch.db.repository import Repository
from vidsearch.search.service import build_service, start_service

index_app = typer.Typer()

_console = Console(stderr=True)

DB_OPTION = typer.Option(None, "--db", help="Catalog database path override")
INDEX_OPTION = typer.Option(None, "--index", help="Embedding index file override")


def _config(db: str | None, index: str | None) -> VSConfig:
    return get_config(
        db_path=Path(db) if db else None,
        index_path=Path(index) if index else None,
    )


@index_app.command("rebuild")
def rebuild_cmd(db: str = DB_OPTION, index: str = INDEX_OPTION) -> None:
    """Embed every published video in the catalog."""
    config = _config(db, index)
    repo = Repository(config.db_path)

    async def _run() -> dict:
        service = await start_service(config)
        videos = repo.list_published_videos()
        report = await service.rebuild_all(videos)
        return report.model_dump()

    try:
        report = asyncio.run(_run())
    except VidSearchError as e:
        raise fail(e)
    finally:
        repo.close()

    colour = "green" if not report["failed"] else "yellow"
    _console.print(
        f"[{colour}]✓[/{colour}] Generated embeddings for "
        f"{report['embedded']}/{report['total']} videos"
    )
    output_json({"success": True, **report})


@index_app.command("update")
def update_cmd(
    video_id: int = typer.Argument(..., help="Video ID to re-embed"),
    db: str = DB_OPTION,
    index: str = INDEX_OPTION,
) -> None:
    """Re-embed a single published video."""
    config = _config(db, index)
    repo = Repository(config.db_path)

    async def _run() -> None:
        video = repo.get_published_video(video_id)
        service = await start_service(config)
        await service.update_one(video)

    try:
        asyncio.run(_run())
    except VidSearchError as e:
        raise fail(e)
    finally:
        repo.close()

    output_json({"success": True, "message": f"Updated embedding for video {video_id}"})


@index_app.command("remove")
def remove_cmd(
    video_id: int = typer.Argument(..., help="Video ID to drop from the index"),
    index: str = INDEX_OPTION,
) -> None:
    """Remove a video's embedding from the index."""
    config = _config(None, index)

    async def _run() -> bool:
        service = build_service(config)
        await asyncio.to_thread(service.index.load)
        return await service.remove_one(video_id)

    try:
        removed = asyncio.run(_run())
    except VidSearchError as e:
        raise fail(e)

    output_json({"success": True, "removed": removed, "video_id": video_id})


@index_app.command("status")
def status_cmd(index: str = INDEX_OPTION) -> None:
    """Show index size, dimensionality and encoder."""
    config = _config(None, index)

    try:
        service = build_service(config)
        service.index.load()
    except VidSearchError as e:
        raise fail(e)

    output_json(service.status(), pretty=True)
