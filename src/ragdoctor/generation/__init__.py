"""
Answer generation with citations and abstention.

This module handles:
- Provider selection and LLM calls
- Citation extraction from [N] markers
- Confidence scoring and abstention
"""

from ragdoctor.generation.oracle import (
    AnswerResult,
    AnsweringOracle,
    LLMProvider,
    OracleError,
    create_oracle,
    detect_provider,
    no_context_answer,
)

__all__ = [
    "AnswerResult",
    "AnsweringOracle",
    "LLMProvider",
    "OracleError",
    "create_oracle",
    "detect_provider",
    "no_context_answer",
]
