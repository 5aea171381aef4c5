"""
Configuration advice from observed failure modes.

Each failure mode has a small rule table. A rule is a condition on the
current RAGConfig plus the fix to suggest when it holds, so advice never
proposes a setting that is already in place (no "switch to hybrid" when
search is already hybrid).

A mode yields a Recommendation only when it occurred at least once and at
least one of its rules applies.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from ragdoctor.evaluation.classifier import FailureMode
from ragdoctor.evaluation.schemas import RAGConfig
from ragdoctor.retrieval.search import SearchType


@dataclass
class Recommendation:
    problem: str
    fixes: list[str] = field(default_factory=list)
    tradeoff: str = ""

    def to_dict(self) -> dict:
        return {"problem": self.problem, "fixes": list(self.fixes), "tradeoff": self.tradeoff}


Rule = tuple[Callable[[RAGConfig], bool], Callable[[RAGConfig], str]]


@dataclass(frozen=True)
class ModeAdvice:
    singular: str
    plural: str
    rules: tuple[Rule, ...]
    tradeoff: str

    def problem(self, count: int) -> str:
        return f"{count} {self.plural if count > 1 else self.singular}"


ADVICE: dict[FailureMode, ModeAdvice] = {
    FailureMode.RETRIEVAL_MISS: ModeAdvice(
        singular="retrieval miss",
        plural="retrieval misses",
        rules=(
            (
                lambda c: c.search_type is SearchType.SEMANTIC,
                lambda c: "Switch to Hybrid search (combines semantic + keyword)",
            ),
            (
                lambda c: c.search_type is SearchType.KEYWORD,
                lambda c: "Switch to Hybrid or Semantic search for better context understanding",
            ),
            (
                lambda c: c.top_k < 8,
                lambda c: f"Increase Top-K from {c.top_k} to 8 to retrieve more chunks",
            ),
            (
                lambda c: c.chunk_size > 500,
                lambda c: "Reduce chunk size to capture more specific context",
            ),
        ),
        tradeoff="Higher Top-K = +50% cost, +0.3s latency",
    ),
    FailureMode.CONTEXT_DILUTION: ModeAdvice(
        singular="context dilution issue",
        plural="context dilution issues",
        rules=(
            (
                lambda c: c.chunk_size > 500,
                lambda c: f"Reduce chunk size from {c.chunk_size} to 500 chars",
            ),
            (
                lambda c: c.top_k > 3,
                lambda c: f"Decrease Top-K from {c.top_k} to 3 chunks",
            ),
            (
                lambda c: c.search_type is not SearchType.SEMANTIC,
                lambda c: "Use pure Semantic search (more precise)",
            ),
        ),
        tradeoff="Smaller chunks = may miss context across boundaries",
    ),
    FailureMode.HALLUCINATION: ModeAdvice(
        singular="hallucination",
        plural="hallucinations",
        rules=(
            (
                lambda c: not c.strict_citations,
                lambda c: "Enable Strict Citations mode",
            ),
            (
                lambda c: c.abstain_threshold < 0.6,
                lambda c: f"Increase Abstain Threshold from {c.abstain_threshold} to 0.6",
            ),
            (
                lambda c: c.search_type is not SearchType.HYBRID,
                lambda c: "Use Hybrid search for better grounding",
            ),
        ),
        tradeoff="Higher threshold = more \"I don't know\" answers",
    ),
    FailureMode.OVER_ABSTAIN: ModeAdvice(
        singular="over-abstention",
        plural="over-abstentions",
        rules=(
            (
                lambda c: c.abstain_threshold > 0.4,
                lambda c: f"Lower Abstain Threshold from {c.abstain_threshold} to 0.4",
            ),
            (
                lambda c: c.top_k < 5,
                lambda c: "Increase Top-K to provide more evidence",
            ),
            (
                lambda c: c.search_type is not SearchType.HYBRID,
                lambda c: "Switch to Hybrid search for better recall",
            ),
        ),
        tradeoff="Lower threshold = risk of less confident answers",
    ),
}


def generate_recommendations(
        failure_counts: dict[FailureMode, int],
        config: RAGConfig,
) -> list[Recommendation]:
    """
    Suggest config changes for each failure mode that occurred.

    Modes are visited in a fixed order (retrieval_miss, context_dilution,
    hallucination, over_abstain); `perfect` never produces advice.
    """
    counts = {FailureMode(mode): count for mode, count in failure_counts.items()}
    recommendations: list[Recommendation] = []

    for mode, advice in ADVICE.items():
        count = counts.get(mode, 0)
        if count <= 0:
            continue

        fixes = [fix(config) for applies, fix in advice.rules if applies(config)]
        if not fixes:
            continue

        recommendations.append(
            Recommendation(
                problem=advice.problem(count),
                fixes=fixes,
                tradeoff=advice.tradeoff,
            )
        )

    return recommendations
