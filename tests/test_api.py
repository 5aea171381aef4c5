"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from conftest import FailingOracle, StubOracle
from ragdoctor.api.main import app, get_oracle_factory
from ragdoctor.config import settings


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def _use_oracle(oracle):
    app.dependency_overrides[get_oracle_factory] = lambda: (lambda api_key, provider: oracle)


@pytest.fixture
def body(research_documents, questions):
    return {
        "documents": [
            {"id": d.id, "name": d.name, "text": d.text, "size": d.size} for d in research_documents
        ],
        "questions": questions,
        "config": {"chunk_size": 800, "search_type": "hybrid", "top_k": 3},
        "api_key": "gsk_test",
    }


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_sample_questions(client):
    data = client.get("/sample-questions").json()

    assert len(data["questions"]) == 5
    assert data["description"]


def test_evaluate(client, body):
    _use_oracle(StubOracle())

    response = client.post("/evaluate", json=body)

    assert response.status_code == 200
    data = response.json()
    assert len(data["results"]) == 3
    assert set(data["comparison"]) == {"quality", "groundedness", "avg_cost", "avg_latency"}
    assert set(data["metrics"]["failure_counts"]) == {
        "perfect", "retrieval_miss", "context_dilution", "hallucination", "over_abstain",
    }


def test_evaluate_rejects_too_few_questions(client, body):
    oracle = StubOracle()
    _use_oracle(oracle)
    body["questions"] = body["questions"][:2]

    response = client.post("/evaluate", json=body)

    assert response.status_code == 400
    assert "between 3 and 20" in response.json()["detail"]
    assert oracle.calls == []


def test_evaluate_rejects_unknown_chunk_size(client, body):
    _use_oracle(StubOracle())
    body["config"]["chunk_size"] = 600

    assert client.post("/evaluate", json=body).status_code == 422


def test_evaluate_provider_failure(client, body):
    _use_oracle(FailingOracle())

    response = client.post("/evaluate", json=body)

    assert response.status_code == 502
    assert "groq" in response.json()["detail"]


def test_evaluate_without_api_key(client, body, monkeypatch):
    """Test a missing key is a client error when none is configured."""
    monkeypatch.setattr(settings, "groq_api_key", None)
    body.pop("api_key")

    response = client.post("/evaluate", json=body)

    assert response.status_code == 400
    assert "No API key" in response.json()["detail"]
