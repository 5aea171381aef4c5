"""Tests for failure-mode classification."""

import itertools

import pytest

from ragdoctor.evaluation.classifier import FailureMode, classify_failure, failure_mode_label

LONG_UNCITED = "The study reports a large improvement in quality across every benchmark it ran."


def _classify(answer, chunks, abstained=False, citations=()):
    return classify_failure("question?", answer, chunks, abstained, 0.5, list(citations))


def test_perfect_answer(make_retrieved):
    chunks = make_retrieved(0.8, 0.6, 0.5)

    assert _classify("Quality improved [1].", chunks, citations=[1]) is FailureMode.PERFECT


def test_no_chunks_is_retrieval_miss():
    """Test an abstention with nothing retrieved is a retrieval miss."""
    mode = _classify("I don't have enough information to answer this question.", [], abstained=True)

    assert mode is FailureMode.RETRIEVAL_MISS


def test_uncited_long_answer_is_hallucination(make_retrieved):
    chunks = make_retrieved(0.6, 0.5, 0.4)

    assert _classify(LONG_UNCITED, chunks) is FailureMode.HALLUCINATION


def test_hallucination_wins_over_weak_retrieval(make_retrieved):
    assert _classify(LONG_UNCITED, make_retrieved(0.1)) is FailureMode.HALLUCINATION


def test_short_uncited_answer_is_not_hallucination(make_retrieved):
    assert _classify("Yes.", make_retrieved(0.6, 0.5)) is FailureMode.RETRIEVAL_MISS


def test_abstaining_on_strong_evidence_is_over_abstain(make_retrieved):
    chunks = make_retrieved(0.7, 0.6, 0.5)

    assert _classify("I don't know.", chunks, abstained=True) is FailureMode.OVER_ABSTAIN


def test_abstaining_on_weak_evidence_is_retrieval_miss(make_retrieved):
    assert _classify("I don't know.", make_retrieved(0.2), abstained=True) is FailureMode.RETRIEVAL_MISS


def test_low_scoring_tail_is_context_dilution(make_retrieved):
    chunks = make_retrieved(0.6, 0.5, 0.3, 0.2, 0.1)

    assert _classify("Quality improved [1].", chunks, citations=[1]) is FailureMode.CONTEXT_DILUTION


def test_dilution_needs_five_chunks(make_retrieved):
    chunks = make_retrieved(0.6, 0.5, 0.3, 0.2)

    assert _classify("Quality improved [1].", chunks, citations=[1]) is FailureMode.PERFECT


def test_one_strong_tail_chunk_prevents_dilution(make_retrieved):
    chunks = make_retrieved(0.6, 0.5, 0.45, 0.2, 0.1)

    assert _classify("Quality improved [1].", chunks, citations=[1]) is FailureMode.PERFECT


def test_middling_top_score_falls_through(make_retrieved):
    """Test a cited answer on a top score between 0.3 and 0.4 is a retrieval miss."""
    chunks = make_retrieved(0.35, 0.3)

    assert _classify("Quality improved [1].", chunks, citations=[1]) is FailureMode.RETRIEVAL_MISS


def test_every_input_gets_one_label(make_retrieved):
    answers = ["", "Short.", LONG_UNCITED]
    score_sets = [(), (0.1,), (0.35, 0.2), (0.6, 0.5, 0.3, 0.2, 0.1), (0.9, 0.8, 0.7)]

    for answer, scores, abstained, citations in itertools.product(
            answers, score_sets, (True, False), ([], [1])
    ):
        mode = _classify(answer, make_retrieved(*scores), abstained, citations)
        assert isinstance(mode, FailureMode)
        assert mode is _classify(answer, make_retrieved(*scores), abstained, citations)


@pytest.mark.parametrize(
    "mode, label",
    [
        (FailureMode.PERFECT, "Perfect Answer"),
        (FailureMode.OVER_ABSTAIN, "Over-abstain"),
        ("retrieval_miss", "Retrieval Miss"),
    ],
)
def test_failure_mode_label(mode, label):
    assert failure_mode_label(mode) == label
