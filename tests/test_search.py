"""Tests for semantic, keyword and hybrid retrieval."""

import numpy as np
import pytest

from ragdoctor.ingestion.chunk import Chunk
from ragdoctor.retrieval.search import (
    SearchType,
    cosine_similarity,
    hybrid_search,
    keyword_score,
    keyword_search,
    reciprocal_rank_fusion,
    retrieve_chunks,
    semantic_search,
)
from ragdoctor.vectorstore.embeddings import BagOfWordsEmbedder, embed_chunks


@pytest.fixture
def embedder():
    return BagOfWordsEmbedder()


@pytest.fixture
def indexed_chunks(embedder):
    texts = [
        "the data analysis method",
        "quality performance evaluation",
        "nothing relevant here",
    ]
    chunks = [
        Chunk(id=f"d-{i}", text=text, doc_id="d", doc_name="d.txt", start=i * 40, end=i * 40 + len(text))
        for i, text in enumerate(texts)
    ]
    return embed_chunks(chunks, embedder)


def test_cosine_similarity_values():
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([1.0, 0.0])) == pytest.approx(1.0)
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 1.0])) == pytest.approx(0.0)
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([-1.0, 0.0])) == pytest.approx(-1.0)


def test_cosine_similarity_degenerate_inputs():
    """Test zero vectors and mismatched lengths score 0."""
    assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0
    assert cosine_similarity(np.ones(2), np.ones(3)) == 0.0


def test_keyword_score():
    """Test only terms longer than two characters count."""
    assert keyword_score("the quick fox", "A quick brown fox") == pytest.approx(2 / 3)
    assert keyword_score("is an ok", "anything") == 0.0
    assert keyword_score("DATA", "raw data set") == 1.0


def test_semantic_search_orders_by_similarity(indexed_chunks, embedder):
    results = semantic_search(embedder.embed_query("data analysis"), indexed_chunks, top_k=3)

    assert [r.id for r in results] == ["d-0", "d-1", "d-2"]
    assert results[0].score == pytest.approx(1 / np.sqrt(2))
    assert all(0.0 <= r.score <= 1.0 for r in results)


def test_semantic_search_skips_unembedded_chunks(indexed_chunks, embedder):
    bare = Chunk(id="d-9", text="data analysis", doc_id="d", doc_name="d.txt", start=0, end=13)

    results = semantic_search(embedder.embed_query("data analysis"), indexed_chunks + [bare], top_k=5)

    assert "d-9" not in [r.id for r in results]
    assert len(results) == 3


def test_keyword_search_truncates(indexed_chunks):
    results = keyword_search("quality evaluation", indexed_chunks, top_k=1)

    assert len(results) == 1
    assert results[0].id == "d-1"
    assert results[0].score == 1.0


def test_reciprocal_rank_fusion(make_retrieved):
    x, y, z = make_retrieved(0.9, 0.8, 0.7)

    fused = reciprocal_rank_fusion([[x, y], [y, z]], k=60)

    assert [r.id for r in fused] == [y.id, x.id, z.id]
    assert fused[0].score == pytest.approx(1 / 61 + 1 / 62)
    assert fused[1].score == pytest.approx(1 / 61)
    assert fused[2].score == pytest.approx(1 / 62)


def test_fusion_ties_keep_first_seen_order(make_retrieved):
    x, z = make_retrieved(0.9, 0.1)

    fused = reciprocal_rank_fusion([[x], [z]], k=60)

    assert [r.id for r in fused] == [x.id, z.id]


def test_hybrid_search_fuses_both_rankings(indexed_chunks, embedder):
    query = "data analysis"

    results = hybrid_search(query, embedder.embed_query(query), indexed_chunks, top_k=1)

    assert [r.id for r in results] == ["d-0"]
    assert results[0].score == pytest.approx(2 / 61)


def test_hybrid_search_is_deterministic(indexed_chunks, embedder):
    query = "performance of the method"
    vector = embedder.embed_query(query)

    first = hybrid_search(query, vector, indexed_chunks, top_k=3)
    second = hybrid_search(query, vector, indexed_chunks, top_k=3)

    assert [(r.id, r.score) for r in first] == [(r.id, r.score) for r in second]


def test_retrieve_chunks_dispatch(indexed_chunks, embedder):
    query = "quality evaluation"
    vector = embedder.embed_query(query)

    for search_type in ("semantic", SearchType.KEYWORD, "hybrid"):
        results = retrieve_chunks(query, vector, indexed_chunks, search_type, top_k=2)
        assert len(results) == 2
        assert results[0].id == "d-1"


def test_retrieve_chunks_empty_index(embedder):
    assert retrieve_chunks("anything", embedder.embed_query("anything"), [], "hybrid", top_k=5) == []


def test_retrieved_chunk_to_dict(indexed_chunks, embedder):
    result = semantic_search(embedder.embed_query("data"), indexed_chunks, top_k=1)[0]

    data = result.to_dict()

    assert data["id"] == "d-0"
    assert "score" in data
    assert "vector" not in data


def test_fused_score_never_rewards_a_worse_rank(make_retrieved):
    items = make_retrieved(0.5, 0.5, 0.5, 0.5, 0.5, 0.5)

    fused = reciprocal_rank_fusion([items], k=60)

    assert [r.id for r in fused] == [item.id for item in items]
    scores = [r.score for r in fused]
    assert all(better > worse for better, worse in zip(scores, scores[1:]))
    assert scores == pytest.approx([1 / (61 + rank) for rank in range(len(items))])


def test_fusion_orders_by_rank_in_both_lists(make_retrieved):
    a, b, c, d = make_retrieved(0.9, 0.8, 0.7, 0.6)

    fused = reciprocal_rank_fusion([[a, b, c, d], [a, c, b, d]], k=60)

    scores = {r.id: r.score for r in fused}
    assert fused[0].id == a.id
    assert fused[-1].id == d.id
    assert scores[a.id] > scores[b.id] > scores[d.id]
    assert scores[b.id] == pytest.approx(scores[c.id])
