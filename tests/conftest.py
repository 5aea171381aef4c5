"""Pytest configuration and shared fixtures."""

import pytest
import structlog

from ragdoctor.generation.oracle import AnswerResult, AnsweringOracle, OracleError
from ragdoctor.ingestion.documents import Document
from ragdoctor.retrieval.search import RetrievedChunk

SENTENCE = "Alpha beta gamma delta epsilon. "


class StubOracle(AnsweringOracle):
    """Answers every question by citing the first chunk; records calls."""

    def __init__(self, answer: str = "The findings show that quality improved over the baseline [1].",
                 confidence: float = 0.8):
        self.answer_text = answer
        self.confidence = confidence
        self.calls: list[tuple[str, int]] = []

    def answer(self, question, chunks, strict_citations, abstain_threshold):
        self.calls.append((question, len(chunks)))
        return AnswerResult(
            answer=self.answer_text,
            abstained=False,
            confidence=self.confidence,
            citations=[1],
            provider="stub",
        )


class FailingOracle(AnsweringOracle):
    """Simulates a provider outage."""

    def __init__(self):
        self.calls = 0

    def answer(self, question, chunks, strict_citations, abstain_threshold):
        self.calls += 1
        try:
            raise ConnectionError("connection reset by peer")
        except ConnectionError as e:
            raise OracleError("Error calling groq API: connection reset by peer", "groq") from e


@pytest.fixture(autouse=True)
def quiet_logs():
    """Capture structlog output so it never mixes with command output."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def fresh_settings():
    """Yield get_settings with its cache cleared before and after the test."""
    from ragdoctor.config import get_settings

    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


@pytest.fixture
def stub_oracle() -> StubOracle:
    return StubOracle()


@pytest.fixture
def failing_oracle() -> FailingOracle:
    return FailingOracle()


@pytest.fixture
def long_document() -> Document:
    """1200 characters of 32-char sentences; periods sit at 30 + 32k."""
    text = (SENTENCE * 38)[:1200]
    return Document(id="doc-a", name="alpha.txt", text=text, size=len(text))


@pytest.fixture
def research_documents() -> list[Document]:
    """Two small documents written with words the default vocabulary knows."""
    report = (
        "This study describes a research method for the evaluation of system performance. "
        "The analysis of the data shows that quality improved with the new model. "
        "The findings support the conclusion that the approach is an improvement. "
        "Limitations of this work include the small data set and the short evaluation. "
        "Future work will extend the methodology to other application areas. "
    ) * 4
    notes = (
        "Design notes for the implementation of the process. "
        "We say that technology development will be one of their future priorities. "
        "There is information on the design of the system and what it would do for you. "
    ) * 3
    return [
        Document(id="doc-report", name="report.txt", text=report, size=len(report)),
        Document(id="doc-notes", name="notes.md", text=notes, size=len(notes)),
    ]


@pytest.fixture
def questions() -> list[str]:
    return [
        "What are the main findings of the study?",
        "What methodology is described in the research?",
        "What limitations and future work are mentioned?",
    ]


@pytest.fixture
def make_retrieved():
    """Build RetrievedChunks with the given scores, best first."""

    def _make(*scores: float, text: str = "Some retrieved context text.") -> list[RetrievedChunk]:
        return [
            RetrievedChunk(
                id=f"doc-x-{i}",
                text=text,
                doc_id="doc-x",
                doc_name="x.txt",
                start=i * 100,
                end=i * 100 + len(text),
                score=score,
            )
            for i, score in enumerate(scores)
        ]

    return _make
