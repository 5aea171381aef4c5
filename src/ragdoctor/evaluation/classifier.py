"""
Failure-mode classification for RAG answers.

Every answer gets exactly one label. Rules are checked in priority order and
the first match wins:

1. over_abstain     - refused although the top chunk scored > 0.5
2. hallucination    - answered at length (> 50 chars) without citing anything
3. retrieval_miss   - top chunk scored < 0.3
4. context_dilution - 5+ chunks and the tail past the top 2 is all < 0.4
5. perfect          - cited, top chunk > 0.4, not abstained
6. retrieval_miss   - anything left over

The function is pure: same inputs, same label.
"""

from enum import Enum

from ragdoctor.retrieval.search import RetrievedChunk

OVER_ABSTAIN_SCORE = 0.5
HALLUCINATION_MIN_CHARS = 50
RETRIEVAL_MISS_SCORE = 0.3
DILUTION_MIN_CHUNKS = 5
DILUTION_LOW_SCORE = 0.4
PERFECT_MIN_SCORE = 0.4


class FailureMode(str, Enum):
    PERFECT = "perfect"
    RETRIEVAL_MISS = "retrieval_miss"
    CONTEXT_DILUTION = "context_dilution"
    HALLUCINATION = "hallucination"
    OVER_ABSTAIN = "over_abstain"


# Display metadata: (label, description, colour)
FAILURE_MODE_INFO: dict[FailureMode, tuple[str, str, str]] = {
    FailureMode.PERFECT: ("Perfect Answer", "Grounded and correctly cited", "green"),
    FailureMode.RETRIEVAL_MISS: ("Retrieval Miss", "Relevant information not found", "orange"),
    FailureMode.CONTEXT_DILUTION: ("Context Dilution", "Too much irrelevant context", "orange"),
    FailureMode.HALLUCINATION: ("Hallucination", "Answer without evidence", "red"),
    FailureMode.OVER_ABSTAIN: ("Over-abstain", "Refused when evidence existed", "yellow"),
}


def classify_failure(
        question: str,
        answer: str,
        retrieved_chunks: list[RetrievedChunk],
        abstained: bool,
        confidence: float,
        citations: list[int],
) -> FailureMode:
    """
    Label one answer with its failure mode.

    `question` and `confidence` are accepted so every signal of a result can
    be passed through; the current rules do not use them.
    """
    top_score = retrieved_chunks[0].score if retrieved_chunks else 0.0
    has_citations = len(citations) > 0

    if abstained and retrieved_chunks and top_score > OVER_ABSTAIN_SCORE:
        return FailureMode.OVER_ABSTAIN

    if not abstained and not has_citations and len(answer) > HALLUCINATION_MIN_CHARS:
        return FailureMode.HALLUCINATION

    if top_score < RETRIEVAL_MISS_SCORE:
        return FailureMode.RETRIEVAL_MISS

    if len(retrieved_chunks) >= DILUTION_MIN_CHUNKS:
        low_tail = [chunk for chunk in retrieved_chunks[2:] if chunk.score < DILUTION_LOW_SCORE]
        if len(low_tail) >= len(retrieved_chunks) - 2:
            return FailureMode.CONTEXT_DILUTION

    if has_citations and top_score > PERFECT_MIN_SCORE and not abstained:
        return FailureMode.PERFECT

    return FailureMode.RETRIEVAL_MISS


def failure_mode_label(mode: FailureMode) -> str:
    return FAILURE_MODE_INFO[FailureMode(mode)][0]
