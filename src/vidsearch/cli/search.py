"""vidsearch search commands: semantic and hybrid."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from vidsearch.cli.output import fail, output_json
from vidsearch.core.config import get_config
from vidsearch.core.constants import SORT_CHOICES
from vidsearch.core.exceptions import VidSearchError
from vidsearch.db.repository import Repository
from vidsearch.search.results import (
    apply_sort,
    attach_hybrid_scores,
    attach_semantic_scores,
    search_response,
)
from vidsearch.search.service import require_query, start_service

search_app = typer.Typer()


@search_app.command("semantic")
def semantic_cmd(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(None, "--limit", "-n", help="Max results"),
    threshold: float = typer.Option(None, "--threshold", "-t", help="Minimum cosine similarity"),
    db: str = typer.Option(None, "--db", help="Catalog database path override"),
    index: str = typer.Option(None, "--index", help="Embedding index file override"),
) -> None:
    """Rank published videos by embedding similarity to the query."""
    try:
        require_query(query)
    except VidSearchError as e:
        raise fail(e)

    config = get_config(
        db_path=Path(db) if db else None,
        index_path=Path(index) if index else None,
    )
    repo = Repository(config.db_path)

    async def _run() -> dict:
        service = await start_service(config)
        hits = await service.semantic_search(query, limit=limit, threshold=threshold)
        videos = repo.get_published_videos_by_ids([h.video_id for h in hits])
        return search_response(query, attach_semantic_scores(hits, videos), "semantic")

    try:
        output_json(asyncio.run(_run()))
    except VidSearchError as e:
        raise fail(e)
    finally:
        repo.close()


@search_app.command("hybrid")
def hybrid_cmd(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(None, "--limit", "-n", help="Max results"),
    semantic_weight: float = typer.Option(None, "--semantic-weight", help="Weight of the embedding score"),
    keyword_weight: float = typer.Option(None, "--keyword-weight", help="Weight of the keyword score"),
    category: str = typer.Option(None, "--category", "-c", help="Restrict to a category ('all' for none)"),
    sort_by: str = typer.Option("relevance", "--sort-by", help="relevance | views | likes | newest"),
    db: str = typer.Option(None, "--db", help="Catalog database path override"),
    index: str = typer.Option(None, "--index", help="Embedding index file override"),
) -> None:
    """Blend embedding similarity with keyword matches over published videos."""
    if sort_by not in SORT_CHOICES:
        raise typer.BadParameter(f"must be one of {', '.join(SORT_CHOICES)}", param_hint="--sort-by")
    try:
        require_query(query)
    except VidSearchError as e:
        raise fail(e)

    config = get_config(
        db_path=Path(db) if db else None,
        index_path=Path(index) if index else None,
    )
    repo = Repository(config.db_path)
    sw = config.semantic_weight if semantic_weight is None else semantic_weight
    kw = config.keyword_weight if keyword_weight is None else keyword_weight

    async def _run() -> dict:
        service = await start_service(config)
        videos = repo.list_published_videos(category=category)
        hits = await service.hybrid_search(
            query, videos, semantic_weight=sw, keyword_weight=kw, limit=limit
        )
        results = apply_sort(attach_hybrid_scores(hits, videos), sort_by)
        return search_response(
            query, results, "hybrid", weights={"semantic": sw, "keyword": kw}
        )

    try:
        output_json(asyncio.run(_run()))
    except VidSearchError as e:
        raise fail(e)
    finally:
        repo.close()
