"""
Configuration and result types for evaluation runs.

RAGConfig is validated with pydantic because it arrives from the outside
(HTTP bodies, CLI flags); everything produced inside the engine is a plain
dataclass.
"""

from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ragdoctor.evaluation.classifier import FailureMode
from ragdoctor.ingestion.chunk import overlap_chars
from ragdoctor.ingestion.documents import Document
from ragdoctor.retrieval.search import RetrievedChunk, SearchType

ChunkSize = Literal[300, 500, 800, 1200]
TopK = Literal[3, 5, 8]


class RAGConfig(BaseModel):
    """One RAG pipeline setup to evaluate."""

    model_config = ConfigDict(frozen=True)

    chunk_size: ChunkSize = Field(
        default=500,
        description="Characters per chunk",
    )
    chunk_overlap: float | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Overlap between chunks as % of chunk_size (None: settings default in chars)",
    )
    search_type: SearchType = Field(
        default=SearchType.SEMANTIC,
        description="Retrieval strategy",
    )
    top_k: TopK = Field(
        default=5,
        description="Chunks passed to the answering step",
    )
    abstain_threshold: float = Field(
        default=0.5,
        ge=0,
        le=1,
        description="Answers with lower confidence become abstentions",
    )
    strict_citations: bool = Field(
        default=True,
        description="Require a citation for every claim",
    )

    @property
    def overlap_chars(self) -> int:
        """Chunk overlap in characters."""
        return overlap_chars(self.chunk_size, self.chunk_overlap)


BASELINE_CONFIG = RAGConfig(
    chunk_size=500,
    search_type=SearchType.SEMANTIC,
    top_k=5,
    abstain_threshold=0.5,
    strict_citations=True,
)

# Users start from the baseline and tweak from there
DEFAULT_CONFIG = BASELINE_CONFIG.model_copy()


@dataclass
class EvaluationRequest:
    documents: list[Document]
    questions: list[str]
    config: RAGConfig = field(default_factory=lambda: DEFAULT_CONFIG)


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome for one question under one configuration.

    retrieved_chunks holds only the top few chunks kept for display.
    `error` is set only when a provider failure was recorded instead of
    aborting the pass.
    """
    question: str
    answer: str
    abstained: bool
    confidence: float
    citations: list[int]
    retrieved_chunks: list[RetrievedChunk]
    failure_mode: FailureMode
    latency: float
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "question": self.question,
            "answer": self.answer,
            "abstained": self.abstained,
            "confidence": self.confidence,
            "citations": list(self.citations),
            "retrieved_chunks": [chunk.to_dict() for chunk in self.retrieved_chunks],
            "failure_mode": self.failure_mode.value,
            "latency": self.latency,
            "error": self.error,
        }
