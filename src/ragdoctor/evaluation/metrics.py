"""
Aggregate metrics over a batch of evaluation results.

- quality:      % of answers that were given (not abstained) and cited
- groundedness: % of answers with at least one citation
- avg_cost:     estimated USD per question from context + answer tokens
- avg_latency:  mean seconds per question

Usage:
    from ragdoctor.evaluation.metrics import calculate_metrics, compare_metrics

    metrics = calculate_metrics(results)
    comparison = compare_metrics(metrics, baseline_metrics)
"""

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ragdoctor.config import settings
from ragdoctor.evaluation.classifier import FailureMode

if TYPE_CHECKING:
    from ragdoctor.evaluation.schemas import EvaluationResult

TOKENS_PER_WORD = 1.3


def empty_failure_counts() -> dict[FailureMode, int]:
    return {mode: 0 for mode in FailureMode}


@dataclass
class Metrics:
    quality: int = 0
    groundedness: int = 0
    avg_cost: float = 0.0
    avg_latency: float = 0.0
    failure_counts: dict[FailureMode, int] = field(default_factory=empty_failure_counts)

    def to_dict(self) -> dict:
        return {
            "quality": self.quality,
            "groundedness": self.groundedness,
            "avg_cost": self.avg_cost,
            "avg_latency": self.avg_latency,
            "failure_counts": {mode.value: count for mode, count in self.failure_counts.items()},
        }


@dataclass
class MetricComparison:
    """One metric against the baseline; `better` is True on ties."""
    value: float
    diff: float
    better: bool

    def to_dict(self) -> dict:
        return {"value": self.value, "diff": self.diff, "better": self.better}


def estimate_tokens(text: str) -> int:
    """Rough token count: about 1.3 tokens per whitespace-separated word."""
    return math.ceil(len((text or "").split()) * TOKENS_PER_WORD)


def _percent(count: int, total: int) -> int:
    # Half-up, so 12.5% reports as 13
    return math.floor(count / total * 100 + 0.5)


def result_cost(result: "EvaluationResult") -> float:
    """Estimated USD for one result's displayed context plus its answer."""
    context_tokens = sum(estimate_tokens(chunk.text) for chunk in result.retrieved_chunks)
    tokens = context_tokens + estimate_tokens(result.answer)
    return tokens / 1_000_000 * settings.cost_per_million_tokens


def calculate_metrics(results: list["EvaluationResult"]) -> Metrics:
    """
    Reduce a batch of results to summary metrics.

    An empty batch gives zeroed metrics. failure_counts always has every
    FailureMode as a key and sums to len(results).
    """
    total = len(results)
    if total == 0:
        return Metrics()

    failure_counts = empty_failure_counts()
    for result in results:
        failure_counts[FailureMode(result.failure_mode)] += 1

    answered_and_cited = sum(1 for r in results if not r.abstained and r.citations)
    cited = sum(1 for r in results if r.citations)

    return Metrics(
        quality=_percent(answered_and_cited, total),
        groundedness=_percent(cited, total),
        avg_cost=sum(result_cost(r) for r in results) / total,
        avg_latency=sum(r.latency for r in results) / total,
        failure_counts=failure_counts,
    )


def compare_metrics(current: Metrics, baseline: Metrics) -> dict[str, MetricComparison]:
    """
    Compare metrics against the baseline.

    Cost is reported as a relative % change (0.0 when the baseline cost is
    zero); the others as absolute differences. Higher is better for quality
    and groundedness, lower for cost and latency.
    """
    if baseline.avg_cost:
        cost_diff = (current.avg_cost - baseline.avg_cost) / baseline.avg_cost * 100
    else:
        cost_diff = 0.0

    return {
        "quality": MetricComparison(
            value=current.quality,
            diff=current.quality - baseline.quality,
            better=current.quality >= baseline.quality,
        ),
        "groundedness": MetricComparison(
            value=current.groundedness,
            diff=current.groundedness - baseline.groundedness,
            better=current.groundedness >= baseline.groundedness,
        ),
        "avg_cost": MetricComparison(
            value=current.avg_cost,
            diff=cost_diff,
            better=current.avg_cost <= baseline.avg_cost,
        ),
        "avg_latency": MetricComparison(
            value=current.avg_latency,
            diff=current.avg_latency - baseline.avg_latency,
            better=current.avg_latency <= baseline.avg_latency,
        ),
    }
