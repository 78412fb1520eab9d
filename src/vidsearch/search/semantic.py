"""Brute-force cosine ranking over the embedding index."""

from __future__ import annotations

import math

from vidsearch.core.exceptions import DimensionMismatchError
from vidsearch.search.index import EmbeddingIndex
from vidsearch.search.models import RecordMetadata, SemanticHit


def cosine_similarity(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(x * x for x in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    # Clamp float drift so identical vectors never report 1.0000000002
    return max(-1.0, min(1.0, dot / (norm_a * norm_b)))


def rank(
    query_vector: list[float],
    index: EmbeddingIndex,
    *,
    limit: int,
    threshold: float,
) -> list[SemanticHit]:
    """Score every entry, keep similarity >= threshold, best first.

    Equal scores keep index insertion order (``sorted`` is stable).
    """
    if limit <= 0:
        return []
    if index.dim is not None and len(query_vector) != index.dim:
        raise DimensionMismatchError(index.dim, len(query_vector))

    scored: list[tuple[float, str, RecordMetadata]] = []
    for video_id, record in index.entries():
        sim = cosine_similarity(query_vector, record.embedding)
        if sim >= threshold:
            scored.append((sim, video_id, record.metadata))

    scored.sort(key=lambda x: x[0], reverse=True)
    return [
        SemanticHit(rank=i + 1, video_id=int(video_id), similarity=sim, metadata=metadata)
        for i, (sim, video_id, metadata) in enumerate(scored[:limit])
    ]
