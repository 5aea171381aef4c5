"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -----------------
    # LLM API Keys
    # -----------------
    groq_api_key: SecretStr | None = Field(
        default=None,
        description="Groq API key, used when no key is supplied with a request",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Anthropic API key for Claude models",
    )
    gemini_api_key: SecretStr | None = Field(
        default=None,
        description="Google Gemini API key",
    )

    # -----------------
    # Models
    # -----------------
    groq_model: str = Field(
        default="llama-3.3-70b-versatile",
        description="Groq chat model",
    )
    openai_model: str = Field(
        default="gpt-4o",
        description="OpenAI chat model",
    )
    anthropic_model: str = Field(
        default="claude-3-5-sonnet-20240620",
        description="Anthropic chat model",
    )
    gemini_model: str = Field(
        default="gemini-1.5-pro",
        description="Gemini chat model",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible Groq endpoint",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible Gemini endpoint",
    )

    # -----------------
    # Generation
    # -----------------
    llm_temperature: float = Field(
        default=0.2,
        description="Sampling temperature for answer generation",
    )
    llm_max_tokens: int = Field(
        default=1024,
        description="Maximum tokens per generated answer",
    )
    llm_max_retries: int = Field(
        default=2,
        description="Retries performed by the provider SDK",
    )
    llm_timeout_seconds: float = Field(
        default=20.0,
        description="Per-request timeout passed to the provider SDK clients",
    )

    # -----------------
    # Evaluation
    # -----------------
    min_questions: int = Field(
        default=3,
        description="Minimum number of questions per evaluation request",
    )
    max_questions: int = Field(
        default=20,
        description="Maximum number of questions per evaluation request",
    )
    default_chunk_overlap: int = Field(
        default=100,
        description="Overlap in characters when the config gives no percentage",
    )
    rrf_k: int = Field(
        default=60,
        description="Reciprocal Rank Fusion constant for hybrid search",
    )
    display_chunks: int = Field(
        default=3,
        description="Retrieved chunks kept on each result for display",
    )
    cost_per_million_tokens: float = Field(
        default=0.10,
        description="Blended USD rate used for cost estimates",
    )
    evaluation_timeout_seconds: float = Field(
        default=60.0,
        description="Wall-clock budget for one evaluation request",
    )
    oracle_error_policy: Literal["abort", "record"] = Field(
        default="abort",
        description=(
            "abort: fail the pass on a provider error; record: keep going. "
            "Recorded errors are classified but not counted towards recommendations"
        ),
    )

    # -----------------
    # Application
    # -----------------
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )

    # -----------------
    # API
    # -----------------
    api_host: str = Field(
        default="0.0.0.0",
        description="API host",
    )
    api_port: int = Field(
        default=8000,
        description="API port",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
