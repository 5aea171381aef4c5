"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError


def test_settings_loads_defaults(fresh_settings, monkeypatch):
    """Test that settings load with default values."""
    for name in ("MIN_QUESTIONS", "MAX_QUESTIONS", "RRF_K", "DISPLAY_CHUNKS", "ORACLE_ERROR_POLICY",
                 "LLM_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    settings = fresh_settings()

    assert settings.min_questions == 3
    assert settings.max_questions == 20
    assert settings.rrf_k == 60
    assert settings.display_chunks == 3
    assert settings.default_chunk_overlap == 100
    assert settings.cost_per_million_tokens == pytest.approx(0.10)
    assert settings.oracle_error_policy == "abort"
    assert settings.llm_timeout_seconds == pytest.approx(20.0)


def test_settings_read_environment(fresh_settings, monkeypatch):
    """Test that environment variables override defaults."""
    monkeypatch.setenv("MAX_QUESTIONS", "10")
    monkeypatch.setenv("ORACLE_ERROR_POLICY", "record")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_test")

    settings = fresh_settings()

    assert settings.max_questions == 10
    assert settings.oracle_error_policy == "record"
    assert settings.groq_api_key.get_secret_value() == "gsk_test"


def test_invalid_error_policy_rejected(fresh_settings, monkeypatch):
    """Test that only abort and record are accepted as error policies."""
    monkeypatch.setenv("ORACLE_ERROR_POLICY", "ignore")

    with pytest.raises(ValidationError):
        fresh_settings()


def test_api_keys_are_secret(fresh_settings, monkeypatch):
    """Test that keys do not leak through repr."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-very-secret")

    settings = fresh_settings()

    assert "sk-very-secret" not in repr(settings)
