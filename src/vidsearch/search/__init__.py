"""Semantic and hybrid video search."""

from vidsearch.search.document import VideoDocument, build_document_text, parse_tags
from vidsearch.search.hybrid import hybrid_rank, keyword_score
from vidsearch.search.index import EmbeddingIndex
from vidsearch.search.semantic import cosine_similarity, rank
from vidsearch.search.service import SearchService, ServiceState, build_service, start_service

__all__ = [
    "EmbeddingIndex",
    "SearchService",
    "ServiceState",
    "VideoDocument",
    "build_document_text",
    "build_service",
    "cosine_similarity",
    "hybrid_rank",
    "keyword_score",
    "parse_tags",
    "rank",
    "start_service",
]
