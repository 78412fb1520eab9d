"""Blend semantic similarity with a keyword-relevance score."""

from __future__ import annotations

from collections.abc import Sequence

from vidsearch.core.constants import (
    DEFAULT_HYBRID_MIN_SCORE,
    DEFAULT_HYBRID_SEMANTIC_THRESHOLD,
    KEYWORD_CATEGORY_BONUS,
    KEYWORD_TEXT_BONUS,
    KEYWORD_TITLE_BONUS,
)
from vidsearch.search.document import VideoDocument, build_document_text
from vidsearch.search.index import EmbeddingIndex
from vidsearch.search.models import HybridHit
from vidsearch.search.semantic import rank


def split_keywords(query: str) -> list[str]:
    return query.lower().split()


def keyword_score(keywords: list[str], video: VideoDocument) -> float:
    """Score a video against query keywords, normalized to [0, 1].

    Each keyword earns +1 if it appears anywhere in the document text, +2 more
    if it appears in the title and +1.5 more if it appears in the category.
    The total is divided by the keyword count and capped at 1.0, so a single
    keyword present in the text alone already scores 1.0.
    """
    if not keywords:
        return 0.0
    text = build_document_text(video)
    title = (video.title or "").lower()
    category = (video.category or "").lower()

    score = 0.0
    for keyword in keywords:
        if keyword in text:
            score += KEYWORD_TEXT_BONUS
        if keyword in title:
            score += KEYWORD_TITLE_BONUS
        if keyword in category:
            score += KEYWORD_CATEGORY_BONUS
    return min(score / len(keywords), 1.0)


def hybrid_rank(
    query_vector: list[float],
    query: str,
    candidates: Sequence[VideoDocument],
    index: EmbeddingIndex,
    *,
    semantic_weight: float,
    keyword_weight: float,
    limit: int,
    semantic_threshold: float = DEFAULT_HYBRID_SEMANTIC_THRESHOLD,
    min_score: float = DEFAULT_HYBRID_MIN_SCORE,
) -> list[HybridHit]:
    """Rank candidates by ``semantic * semantic_weight + keyword * keyword_weight``.

    Weights are used as given. Candidates absent from the index get a
    semantic score of 0. Only combined scores strictly above ``min_score``
    survive.
    """
    if limit <= 0 or not candidates:
        return []

    semantic_hits = rank(
        query_vector, index, limit=len(candidates), threshold=semantic_threshold
    )
    semantic_map = {hit.video_id: hit.similarity for hit in semantic_hits}
    keywords = split_keywords(query)

    scored: list[tuple[float, float, float, int]] = []
    for video in candidates:
        semantic = semantic_map.get(video.id, 0.0)
        keyword = keyword_score(keywords, video)
        combined = semantic * semantic_weight + keyword * keyword_weight
        if combined > min_score:
            scored.append((combined, semantic, keyword, video.id))

    scored.sort(key=lambda x: x[0], reverse=True)
    return [
        HybridHit(
            rank=i + 1,
            video_id=video_id,
            combined_score=combined,
            semantic_score=semantic,
            keyword_score=keyword,
        )
        for i, (combined, semantic, keyword, video_id) in enumerate(scored[:limit])
    ]
