"""Shape ranked hits into JSON-serializable response payloads."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from vidsearch.core.exceptions import VidSearchError
from vidsearch.search.models import HybridHit, SemanticHit


def _round(score: float) -> float:
    return round(score, 2)


def _by_id(videos: Sequence[dict[str, Any]]) -> dict[int, dict[str, Any]]:
    return {v["id"]: v for v in videos}


def attach_semantic_scores(
    hits: Sequence[SemanticHit], videos: Sequence[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Merge catalog rows with similarity scores; hits without a row are dropped."""
    rows = _by_id(videos)
    results = []
    for hit in hits:
        video = rows.get(hit.video_id)
        if video is None:
            continue
        results.append({
            **video,
            "similarity_score": _round(hit.similarity),
            "search_rank": hit.rank,
        })
    return results


def attach_hybrid_scores(
    hits: Sequence[HybridHit], videos: Sequence[dict[str, Any]]
) -> list[dict[str, Any]]:
    rows = _by_id(videos)
    results = []
    for hit in hits:
        video = rows.get(hit.video_id)
        if video is None:
            continue
        results.append({
            **video,
            "combined_score": _round(hit.combined_score),
            "semantic_score": _round(hit.semantic_score),
            "keyword_score": _round(hit.keyword_score),
            "search_rank": hit.rank,
        })
    return results


def apply_sort(results: list[dict[str, Any]], sort_by: str) -> list[dict[str, Any]]:
    """Re-order ranked results. ``search_rank`` keeps the relevance position."""
    if sort_by == "views":
        return sorted(results, key=lambda r: r.get("views") or 0, reverse=True)
    if sort_by == "likes":
        return sorted(results, key=lambda r: r.get("like_count") or 0, reverse=True)
    if sort_by == "newest":
        return sorted(results, key=lambda r: r.get("created_at") or "", reverse=True)
    return results


def search_response(
    query: str,
    results: list[dict[str, Any]],
    search_type: str,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "success": True,
        "results": results,
        "query": query,
        "total": len(results),
        "search_type": search_type,
        **extra,
    }


def error_payload(exc: Exception) -> tuple[int, dict[str, Any]]:
    """Map an exception to (status_code, failure payload)."""
    if isinstance(exc, VidSearchError):
        return exc.status_code, {
            "success": False,
            "error": str(exc),
            "details": exc.details,
        }
    return 500, {"success": False, "error": "Internal error", "details": str(exc)}
