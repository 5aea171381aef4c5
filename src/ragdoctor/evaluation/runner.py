"""
Two-pass RAG evaluation.

An evaluation runs one pipeline function twice over the same documents and
questions: once with the user's RAGConfig and once with BASELINE_CONFIG.
Nothing is shared between the passes except read-only inputs, and the
baseline is just another config value.

Per question the pipeline is:
1. Embed the question
2. Retrieve chunks with the config's strategy
3. Ask the oracle (skipped when nothing was retrieved)
4. Classify the failure mode

Usage:
    from ragdoctor.evaluation.runner import evaluate
    from ragdoctor.generation.oracle import create_oracle

    response = evaluate(request, oracle=create_oracle(api_key))
    print(response.metrics.quality, response.baseline_metrics.quality)
"""

from collections import Counter
from dataclasses import dataclass, field
from time import perf_counter

import structlog

from ragdoctor.config import settings
from ragdoctor.evaluation.classifier import classify_failure
from ragdoctor.evaluation.metrics import MetricComparison, Metrics, calculate_metrics, compare_metrics
from ragdoctor.evaluation.recommendations import Recommendation, generate_recommendations
from ragdoctor.evaluation.schemas import BASELINE_CONFIG, EvaluationRequest, EvaluationResult, RAGConfig
from ragdoctor.generation.oracle import AnswerResult, AnsweringOracle, OracleError, no_context_answer
from ragdoctor.ingestion.chunk import Chunk, DocumentChunker
from ragdoctor.ingestion.documents import Document
from ragdoctor.logging import get_logger
from ragdoctor.retrieval.search import retrieve_chunks
from ragdoctor.vectorstore.embeddings import BagOfWordsEmbedder, BaseEmbedder, embed_chunks

logger = get_logger(__name__, component="runner")


class EvaluationInputError(ValueError):
    """The request cannot be evaluated as given."""


class EvaluationTimeoutError(TimeoutError):
    """The request ran past its wall-clock budget."""


@dataclass
class EvaluationResponse:
    results: list[EvaluationResult]
    metrics: Metrics
    baseline_metrics: Metrics
    recommendations: list[Recommendation]
    baseline_results: list[EvaluationResult] = field(default_factory=list)

    @property
    def comparison(self) -> dict[str, MetricComparison]:
        return compare_metrics(self.metrics, self.baseline_metrics)

    def to_dict(self) -> dict:
        return {
            "results": [result.to_dict() for result in self.results],
            "metrics": self.metrics.to_dict(),
            "baseline_metrics": self.baseline_metrics.to_dict(),
            "comparison": {name: item.to_dict() for name, item in self.comparison.items()},
            "recommendations": [rec.to_dict() for rec in self.recommendations],
        }


def validate_request(request: EvaluationRequest) -> None:
    """
    Reject requests that cannot produce a meaningful evaluation.

    Raises:
        EvaluationInputError: With a message naming the problem
    """
    if not request.documents:
        raise EvaluationInputError("No documents provided")

    if not request.questions:
        raise EvaluationInputError("No questions provided")

    low, high = settings.min_questions, settings.max_questions
    if not low <= len(request.questions) <= high:
        raise EvaluationInputError(
            f"Please provide between {low} and {high} questions (got {len(request.questions)})"
        )


class _Deadline:
    """Cooperative wall-clock budget, checked between questions."""

    def __init__(self, seconds: float | None):
        self.seconds = seconds
        self.started = perf_counter()

    def check(self) -> None:
        if self.seconds is None:
            return
        elapsed = perf_counter() - self.started
        if elapsed > self.seconds:
            raise EvaluationTimeoutError(
                f"Evaluation exceeded its {self.seconds:.0f}s budget after {elapsed:.1f}s"
            )


def prepare_chunks(
        documents: list[Document],
        config: RAGConfig,
        embedder: BaseEmbedder,
) -> list[Chunk]:
    """Chunk and embed the documents for one config."""
    chunker = DocumentChunker(chunk_size=config.chunk_size, overlap=config.overlap_chars)
    return embed_chunks(chunker.chunk_documents(documents), embedder)


def evaluate_question(
        question: str,
        chunks: list[Chunk],
        config: RAGConfig,
        oracle: AnsweringOracle,
        embedder: BaseEmbedder,
) -> EvaluationResult:
    """
    Run the retrieval, answering and classification steps for one question.

    Oracle errors are re-raised unless settings.oracle_error_policy is
    "record", in which case the question is kept as an abstention with the
    error message attached.
    """
    start = perf_counter()
    error: str | None = None

    query_vector = embedder.embed_query(question)
    retrieved = retrieve_chunks(question, query_vector, chunks, config.search_type, config.top_k)

    if not retrieved:
        answer = no_context_answer()
    else:
        try:
            answer = oracle.answer(
                question,
                retrieved,
                config.strict_citations,
                config.abstain_threshold,
            )
        except OracleError as e:
            if settings.oracle_error_policy != "record":
                raise
            logger.warning("oracle_error_recorded", question=question[:50], error=str(e))
            error = str(e)
            answer = AnswerResult(answer="", abstained=True, confidence=0.0, citations=[])

    failure_mode = classify_failure(
        question,
        answer.answer,
        retrieved,
        answer.abstained,
        answer.confidence,
        answer.citations,
    )

    return EvaluationResult(
        question=question,
        answer=answer.answer,
        abstained=answer.abstained,
        confidence=answer.confidence,
        citations=list(answer.citations),
        retrieved_chunks=retrieved[:settings.display_chunks],
        failure_mode=failure_mode,
        latency=perf_counter() - start,
        error=error,
    )


def run_pipeline(
        documents: list[Document],
        questions: list[str],
        config: RAGConfig,
        oracle: AnsweringOracle,
        embedder: BaseEmbedder | None = None,
        deadline: _Deadline | None = None,
        label: str = "user",
        chunks: list[Chunk] | None = None,
) -> list[EvaluationResult]:
    """
    Evaluate every question under one config.

    Chunks and their vectors are built once (or passed in, already embedded
    for this config's chunking) and shared read-only by all questions.
    Questions run sequentially in input order.
    """
    embedder = embedder or BagOfWordsEmbedder()
    deadline = deadline or _Deadline(None)

    with structlog.contextvars.bound_contextvars(config_label=label):
        if chunks is None:
            chunks = prepare_chunks(documents, config, embedder)

        logger.info(
            "pass_start",
            questions=len(questions),
            chunks=len(chunks),
            search_type=config.search_type.value,
            top_k=config.top_k,
        )

        results: list[EvaluationResult] = []
        for question in questions:
            deadline.check()
            results.append(evaluate_question(question, chunks, config, oracle, embedder))

        logger.info(
            "pass_complete",
            questions=len(results),
            failures=dict(Counter(r.failure_mode.value for r in results)),
        )

    return results


def evaluate(
        request: EvaluationRequest,
        oracle: AnsweringOracle,
        embedder: BaseEmbedder | None = None,
        baseline: RAGConfig = BASELINE_CONFIG,
        timeout_seconds: float | None = None,
) -> EvaluationResponse:
    """
    Evaluate the request's config against the baseline.

    Args:
        request: Documents, questions and the user config
        oracle: Answering backend, constructed by the caller
        embedder: Vectorizer. Defaults to BagOfWordsEmbedder
        baseline: Config to compare against
        timeout_seconds: Wall-clock budget. Defaults to
                         settings.evaluation_timeout_seconds

    Raises:
        EvaluationInputError: Invalid request, before any work is done
        OracleError: Provider failure under the "abort" policy
        EvaluationTimeoutError: Budget exceeded
    """
    validate_request(request)

    embedder = embedder or BagOfWordsEmbedder()
    budget = settings.evaluation_timeout_seconds if timeout_seconds is None else timeout_seconds
    deadline = _Deadline(budget)

    logger.info(
        "evaluation_start",
        documents=len(request.documents),
        questions=len(request.questions),
        config=request.config.model_dump(mode="json"),
    )

    # Keyed by chunking setup so identical setups are chunked and embedded once
    prepared: dict[tuple[int, int], list[Chunk]] = {}

    def chunks_for(config: RAGConfig) -> list[Chunk]:
        key = (config.chunk_size, config.overlap_chars)
        if key not in prepared:
            prepared[key] = prepare_chunks(request.documents, config, embedder)
        return prepared[key]

    results = run_pipeline(
        request.documents, request.questions, request.config, oracle, embedder, deadline, "user",
        chunks=chunks_for(request.config),
    )
    baseline_results = run_pipeline(
        request.documents, request.questions, baseline, oracle, embedder, deadline, "baseline",
        chunks=chunks_for(baseline),
    )

    metrics = calculate_metrics(results)
    baseline_metrics = calculate_metrics(baseline_results)
    # Recorded provider errors say nothing about the config
    answered = calculate_metrics([r for r in results if r.error is None])
    recommendations = generate_recommendations(answered.failure_counts, request.config)

    logger.info(
        "evaluation_complete",
        quality=metrics.quality,
        baseline_quality=baseline_metrics.quality,
        recommendations=len(recommendations),
    )

    return EvaluationResponse(
        results=results,
        metrics=metrics,
        baseline_metrics=baseline_metrics,
        recommendations=recommendations,
        baseline_results=baseline_results,
    )
