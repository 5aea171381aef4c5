"""
Evaluation framework for RAG quality.

This module handles:
- Failure-mode classification of answers
- Aggregate quality, groundedness, cost and latency metrics
- Configuration recommendations from failure patterns
- The two-pass (user vs. baseline) evaluation run
"""

from ragdoctor.evaluation.classifier import FailureMode, classify_failure
from ragdoctor.evaluation.metrics import Metrics, calculate_metrics, compare_metrics
from ragdoctor.evaluation.recommendations import Recommendation, generate_recommendations
from ragdoctor.evaluation.runner import (
    EvaluationInputError,
    EvaluationResponse,
    EvaluationTimeoutError,
    evaluate,
    run_pipeline,
)
from ragdoctor.evaluation.schemas import (
    BASELINE_CONFIG,
    DEFAULT_CONFIG,
    EvaluationRequest,
    EvaluationResult,
    RAGConfig,
)

__all__ = [
    "FailureMode",
    "classify_failure",
    "Metrics",
    "calculate_metrics",
    "compare_metrics",
    "Recommendation",
    "generate_recommendations",
    "EvaluationInputError",
    "EvaluationResponse",
    "EvaluationTimeoutError",
    "evaluate",
    "run_pipeline",
    "BASELINE_CONFIG",
    "DEFAULT_CONFIG",
    "EvaluationRequest",
    "EvaluationResult",
    "RAGConfig",
]
