"""
Chunk retrieval with three search strategies.

- Semantic: cosine similarity between query and chunk vectors
- Keyword: share of query terms that appear in the chunk text
- Hybrid: both of the above, merged with Reciprocal Rank Fusion (RRF)

RRF ignores the raw scores and only looks at positions:

    fused(chunk) = sum over lists of 1 / (k + rank + 1)

so semantic scores in [0, 1] and keyword fractions can be combined without
calibrating one against the other.

All rankings use Python's stable sort, so chunks with equal scores keep
their input order and results are reproducible run to run.

Usage:
    from ragdoctor.retrieval.search import retrieve_chunks, SearchType

    results = retrieve_chunks(
        query="What methodology is described?",
        query_vector=embedder.embed_query(query),
        chunks=embedded_chunks,
        search_type=SearchType.HYBRID,
        top_k=5,
    )
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from ragdoctor.config import settings
from ragdoctor.ingestion.chunk import Chunk
from ragdoctor.logging import get_logger

logger = get_logger(__name__, component="search")


class SearchType(str, Enum):
    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    HYBRID = "hybrid"


@dataclass
class RetrievedChunk(Chunk):
    """A chunk plus its relevance score for one query (scale depends on strategy)."""
    score: float = 0.0

    @classmethod
    def from_chunk(cls, chunk: Chunk, score: float) -> "RetrievedChunk":
        # Vectors are shared read-only, not copied
        return cls(
            id=chunk.id,
            text=chunk.text,
            doc_id=chunk.doc_id,
            doc_name=chunk.doc_name,
            start=chunk.start,
            end=chunk.end,
            vector=chunk.vector,
            score=float(score),
        )

    def to_dict(self) -> dict:
        return {**super().to_dict(), "score": self.score}


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine similarity of two vectors, in [-1, 1].

    Mismatched lengths or a zero-length vector score 0.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if a.shape != b.shape:
        return 0.0

    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return 0.0

    similarity = float(np.dot(a, b) / norm)
    return float(np.clip(similarity, -1.0, 1.0))


def query_terms(query: str) -> list[str]:
    """Lowercased whitespace tokens longer than two characters."""
    return [term for term in query.lower().split() if len(term) > 2]


def keyword_score(query: str, text: str) -> float:
    """Fraction of query terms found as substrings of the text, in [0, 1]."""
    terms = query_terms(query)
    if not terms:
        return 0.0

    text_lower = text.lower()
    matches = sum(1 for term in terms if term in text_lower)
    return matches / len(terms)


def _rank(scored: list[RetrievedChunk], top_k: int) -> list[RetrievedChunk]:
    return sorted(scored, key=lambda item: item.score, reverse=True)[:top_k]


def semantic_search(
        query_vector: np.ndarray,
        chunks: list[Chunk],
        top_k: int,
) -> list[RetrievedChunk]:
    """
    Rank chunks by cosine similarity to the query vector.

    Chunks that have not been embedded are skipped.
    """
    scored = [
        RetrievedChunk.from_chunk(chunk, cosine_similarity(query_vector, chunk.vector))
        for chunk in chunks
        if chunk.vector is not None and len(chunk.vector) > 0
    ]
    return _rank(scored, top_k)


def keyword_search(query: str, chunks: list[Chunk], top_k: int) -> list[RetrievedChunk]:
    """Rank chunks by keyword overlap with the query."""
    scored = [RetrievedChunk.from_chunk(chunk, keyword_score(query, chunk.text)) for chunk in chunks]
    return _rank(scored, top_k)


def reciprocal_rank_fusion(
        ranked_lists: list[list[RetrievedChunk]],
        k: int | None = None,
) -> list[RetrievedChunk]:
    """
    Merge ranked lists by summing 1 / (k + rank + 1) per appearance.

    Args:
        ranked_lists: Lists ordered best first; rank is the 0-based position
        k: RRF constant. Defaults to settings.rrf_k

    Returns:
        All chunks that appear in any list, best fused score first, carrying
        the fused score
    """
    k = settings.rrf_k if k is None else k

    fused: dict[str, tuple[RetrievedChunk, float]] = {}
    for ranked in ranked_lists:
        for rank, item in enumerate(ranked):
            contribution = 1.0 / (k + rank + 1)
            if item.id in fused:
                first_seen, score = fused[item.id]
                fused[item.id] = (first_seen, score + contribution)
            else:
                fused[item.id] = (item, contribution)

    merged = [RetrievedChunk.from_chunk(item, score) for item, score in fused.values()]
    return sorted(merged, key=lambda item: item.score, reverse=True)


def hybrid_search(
        query: str,
        query_vector: np.ndarray,
        chunks: list[Chunk],
        top_k: int,
) -> list[RetrievedChunk]:
    """
    Semantic and keyword search fused with RRF.

    Each strategy contributes its top 2*top_k candidates before fusion.
    """
    semantic_results = semantic_search(query_vector, chunks, top_k * 2)
    keyword_results = keyword_search(query, chunks, top_k * 2)

    merged = reciprocal_rank_fusion([semantic_results, keyword_results])

    logger.debug(
        "hybrid_fusion",
        semantic=len(semantic_results),
        keyword=len(keyword_results),
        fused=len(merged),
    )

    return merged[:top_k]


def retrieve_chunks(
        query: str,
        query_vector: np.ndarray,
        chunks: list[Chunk],
        search_type: SearchType | str,
        top_k: int,
) -> list[RetrievedChunk]:
    """
    Retrieve the top_k chunks for a query with the chosen strategy.

    Returns:
        At most top_k chunks, best first
    """
    search_type = SearchType(search_type)

    if search_type is SearchType.SEMANTIC:
        results = semantic_search(query_vector, chunks, top_k)
    elif search_type is SearchType.KEYWORD:
        results = keyword_search(query, chunks, top_k)
    else:
        results = hybrid_search(query, query_vector, chunks, top_k)

    logger.debug(
        "retrieval_complete",
        query=query[:50],
        search_type=search_type.value,
        results=len(results),
        top_score=results[0].score if results else None,
    )

    return results
