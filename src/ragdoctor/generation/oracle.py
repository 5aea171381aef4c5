"""
Answer generation behind a single oracle interface.

The evaluation engine only needs structured output from the answering step:
the answer text, whether the model abstained, a confidence value, and which
numbered context chunks were cited. Any backend that can produce that is an
AnsweringOracle.

The LLM-backed oracles share one post-processing path:
1. Pull [N] citation markers out of the answer (bounded to the context size)
2. Compute confidence from citation coverage and top-3 retrieval scores
3. Turn refusal phrasing or low confidence into an explicit abstention

Supported providers (selected by key prefix unless given explicitly):
- Groq ("gsk_"), OpenAI ("sk-"), Gemini ("AIza") via the openai SDK
- Anthropic ("sk-ant-") via the anthropic SDK

Usage:
    from ragdoctor.generation.oracle import create_oracle

    oracle = create_oracle(api_key="gsk_...")
    result = oracle.answer(question, chunks, strict_citations=True, abstain_threshold=0.5)
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from ragdoctor.config import settings
from ragdoctor.logging import get_logger
from ragdoctor.retrieval.search import RetrievedChunk

logger = get_logger(__name__, component="oracle")

NO_CONTEXT_ANSWER = "I don't have enough information to answer this question."
ABSTAIN_ANSWER = "I don't have enough information to answer this reliably."

ABSTAIN_PHRASES = (
    "don't have enough information",
    "cannot answer",
    "not enough context",
    "no information available",
    "unable to determine",
)

STRICT_CITATION_INSTRUCTION = (
    "You MUST cite sources using [N] format for every claim. If the evidence is "
    "insufficient, respond with 'I don't have enough information to answer this reliably.'"
)
LENIENT_CITATION_INSTRUCTION = "Cite sources using [N] format when possible."

SYSTEM_PROMPT = """You are a helpful assistant that answers questions based on the provided context.
{citation_instruction}
Only use information from the provided context. Do not make up information."""

USER_PROMPT = """Context:
{context}

Question: {question}

Answer:"""

CITATION_PATTERN = re.compile(r"\[(\d+)\]")


class LLMProvider(str, Enum):
    GROQ = "groq"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class OracleError(RuntimeError):
    """A provider call failed. The SDK exception is chained as __cause__."""

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


@dataclass
class AnswerResult:
    """Structured output of one answering call."""
    answer: str
    abstained: bool
    confidence: float
    citations: list[int] = field(default_factory=list)
    provider: str | None = None


def no_context_answer() -> AnswerResult:
    """The abstention used when retrieval found nothing to answer from."""
    return AnswerResult(
        answer=NO_CONTEXT_ANSWER,
        abstained=True,
        confidence=0.0,
        citations=[],
    )


def detect_provider(api_key: str) -> LLMProvider:
    """
    Detect the provider from an API key prefix.

    "sk-ant-" must be checked before the generic OpenAI "sk-" prefix.
    Unknown keys fall back to Groq.
    """
    if api_key.startswith("gsk_"):
        return LLMProvider.GROQ
    if api_key.startswith("sk-ant-"):
        return LLMProvider.ANTHROPIC
    if api_key.startswith("sk-"):
        return LLMProvider.OPENAI
    if api_key.startswith("AIza"):
        return LLMProvider.GEMINI
    return LLMProvider.GROQ


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Number chunks from 1 so the model can cite them as [N]."""
    return "\n\n".join(
        f"[{i}] ({chunk.doc_name}): {chunk.text}" for i, chunk in enumerate(chunks, 1)
    )


def build_prompts(question: str, chunks: list[RetrievedChunk], strict_citations: bool) -> tuple[str, str]:
    """Return the (system, user) prompt pair for a question."""
    instruction = STRICT_CITATION_INSTRUCTION if strict_citations else LENIENT_CITATION_INSTRUCTION
    system_prompt = SYSTEM_PROMPT.format(citation_instruction=instruction)
    user_prompt = USER_PROMPT.format(context=format_context(chunks), question=question)
    return system_prompt, user_prompt


def extract_citations(answer: str, num_chunks: int) -> list[int]:
    """
    Collect [N] markers that point at real context positions.

    Returns unique 1-based indices in order of first appearance.
    """
    citations: list[int] = []
    for match in CITATION_PATTERN.finditer(answer):
        index = int(match.group(1))
        if 1 <= index <= num_chunks and index not in citations:
            citations.append(index)
    return citations


def compute_confidence(citations: list[int], chunks: list[RetrievedChunk]) -> float:
    """
    Blend citation coverage and retrieval strength, clamped to [0, 1].

    coverage = cited / min(len(chunks), 3)
    strength = (sum of the top-3 scores) / 3
    """
    if not chunks:
        return 0.0

    coverage = len(citations) / min(len(chunks), 3)
    strength = sum(chunk.score for chunk in chunks[:3]) / 3
    confidence = coverage * 0.5 + strength * 0.5
    return min(max(confidence, 0.0), 1.0)


def is_refusal(answer: str) -> bool:
    answer_lower = answer.lower()
    return any(phrase in answer_lower for phrase in ABSTAIN_PHRASES)


def finalize_answer(
        raw_answer: str,
        chunks: list[RetrievedChunk],
        abstain_threshold: float,
        provider: str | None = None,
) -> AnswerResult:
    """
    Turn raw model text into an AnswerResult.

    Refusal phrasing or confidence under the threshold collapse into a
    single abstention with the canned answer and no citations.
    """
    citations = extract_citations(raw_answer, len(chunks))
    confidence = compute_confidence(citations, chunks)

    if is_refusal(raw_answer) or confidence < abstain_threshold:
        return AnswerResult(
            answer=ABSTAIN_ANSWER,
            abstained=True,
            confidence=confidence,
            citations=[],
            provider=provider,
        )

    return AnswerResult(
        answer=raw_answer,
        abstained=False,
        confidence=confidence,
        citations=citations,
        provider=provider,
    )


class AnsweringOracle(ABC):
    """Anything that can answer a question from ranked context."""

    @abstractmethod
    def answer(
            self,
            question: str,
            chunks: list[RetrievedChunk],
            strict_citations: bool,
            abstain_threshold: float,
    ) -> AnswerResult:
        """Answer `question` using `chunks` (best first, cited from 1)."""
        pass


class LLMOracle(AnsweringOracle):
    """
    Base for chat-model oracles.

    Subclasses implement `_complete` for one SDK; prompting and answer
    post-processing are shared.
    """

    provider: LLMProvider

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        """Run one chat completion and return the text."""
        pass

    def answer(
            self,
            question: str,
            chunks: list[RetrievedChunk],
            strict_citations: bool,
            abstain_threshold: float,
    ) -> AnswerResult:
        system_prompt, user_prompt = build_prompts(question, chunks, strict_citations)

        logger.debug(
            "oracle_request",
            provider=self.provider.value,
            model=self.model,
            question=question[:50],
            context_chunks=len(chunks),
        )

        raw_answer = self._complete(system_prompt, user_prompt)
        result = finalize_answer(raw_answer, chunks, abstain_threshold, self.provider.value)

        logger.debug(
            "oracle_response",
            provider=self.provider.value,
            abstained=result.abstained,
            confidence=round(result.confidence, 3),
            citations=result.citations,
        )

        return result


class OpenAICompatibleOracle(LLMOracle):
    """
    Chat completions through the openai SDK.

    Groq and Gemini expose OpenAI-compatible endpoints, so the same client
    serves them with a different base_url.
    """

    def __init__(
            self,
            api_key: str,
            provider: LLMProvider = LLMProvider.OPENAI,
            model: str | None = None,
            base_url: str | None = None,
    ):
        try:
            from openai import OpenAI
        except ImportError:
            raise ImportError(
                "openai package not installed. Install with: pip install openai"
            )

        defaults = {
            LLMProvider.OPENAI: (settings.openai_model, None),
            LLMProvider.GROQ: (settings.groq_model, settings.groq_base_url),
            LLMProvider.GEMINI: (settings.gemini_model, settings.gemini_base_url),
        }
        if provider not in defaults:
            raise ValueError(f"Provider {provider.value} is not OpenAI-compatible")

        default_model, default_base_url = defaults[provider]
        super().__init__(model or default_model)
        self.provider = provider

        client_kwargs = {
            "api_key": api_key,
            "max_retries": settings.llm_max_retries,
            "timeout": settings.llm_timeout_seconds,
        }
        base_url = base_url or default_base_url
        if base_url:
            client_kwargs["base_url"] = base_url
        self.client = OpenAI(**client_kwargs)

        logger.info("oracle_initialized", provider=provider.value, model=self.model)

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        from openai import OpenAIError

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
            )
        except OpenAIError as e:
            logger.error("oracle_call_failed", provider=self.provider.value, error=str(e))
            raise OracleError(f"Error calling {self.provider.value} API: {e}", self.provider.value) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicOracle(LLMOracle):
    """Claude models through the anthropic SDK."""

    provider = LLMProvider.ANTHROPIC

    def __init__(self, api_key: str, model: str | None = None):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "anthropic package not installed. Install with: pip install anthropic"
            )

        super().__init__(model or settings.anthropic_model)
        self.client = Anthropic(
            api_key=api_key,
            max_retries=settings.llm_max_retries,
            timeout=settings.llm_timeout_seconds,
        )

        logger.info("oracle_initialized", provider=self.provider.value, model=self.model)

    def _complete(self, system_prompt: str, user_prompt: str) -> str:
        from anthropic import AnthropicError

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=settings.llm_max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=settings.llm_temperature,
            )
        except AnthropicError as e:
            logger.error("oracle_call_failed", provider=self.provider.value, error=str(e))
            raise OracleError(f"Error calling {self.provider.value} API: {e}", self.provider.value) from e

        if not response.content or response.content[0].type != "text":
            return ""
        return response.content[0].text


def _configured_key(provider: LLMProvider | None) -> str | None:
    keys = {
        LLMProvider.GROQ: settings.groq_api_key,
        LLMProvider.OPENAI: settings.openai_api_key,
        LLMProvider.ANTHROPIC: settings.anthropic_api_key,
        LLMProvider.GEMINI: settings.gemini_api_key,
    }
    secret = keys[provider] if provider else settings.groq_api_key
    return secret.get_secret_value() if secret else None


def create_oracle(
        api_key: str | None = None,
        provider: LLMProvider | str | None = None,
        model: str | None = None,
) -> LLMOracle:
    """
    Build an oracle for the caller's key.

    Args:
        api_key: Provider key. Falls back to the key configured for
                 `provider`, or GROQ_API_KEY when no provider is given
        provider: Force a provider instead of detecting it from the key
        model: Override the provider's default model

    Raises:
        ValueError: No key was supplied or configured
    """
    provider = LLMProvider(provider) if provider else None

    effective_key = api_key or _configured_key(provider)
    if not effective_key:
        raise ValueError(
            "No API key supplied. Pass one with the request or set GROQ_API_KEY in your .env file."
        )

    provider = provider or detect_provider(effective_key)

    if provider is LLMProvider.ANTHROPIC:
        return AnthropicOracle(api_key=effective_key, model=model)
    return OpenAICompatibleOracle(api_key=effective_key, provider=provider, model=model)
