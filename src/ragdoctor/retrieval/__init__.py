"""
Retrieval of context chunks for a question.

This module handles:
- Semantic search over chunk vectors
- Keyword search over chunk text
- Hybrid search with Reciprocal Rank Fusion
"""

from ragdoctor.retrieval.search import (
    RetrievedChunk,
    SearchType,
    cosine_similarity,
    hybrid_search,
    keyword_score,
    keyword_search,
    reciprocal_rank_fusion,
    retrieve_chunks,
    semantic_search,
)

__all__ = [
    "RetrievedChunk",
    "SearchType",
    "cosine_similarity",
    "hybrid_search",
    "keyword_score",
    "keyword_search",
    "reciprocal_rank_fusion",
    "retrieve_chunks",
    "semantic_search",
]
