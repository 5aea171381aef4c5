"""
HTTP API for running evaluations.

Endpoints:
- POST /evaluate: user config vs. baseline over documents and questions
- GET /sample-questions: starter question set
- GET /health: liveness check

Run with:
    ragdoctor serve
    # or: uvicorn ragdoctor.api.main:app
"""

from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from ragdoctor import __version__
from ragdoctor.evaluation.runner import (
    EvaluationInputError,
    EvaluationTimeoutError,
    evaluate,
    validate_request,
)
from ragdoctor.evaluation.samples import SAMPLE_QUESTIONS, SAMPLE_QUESTIONS_DESCRIPTION
from ragdoctor.evaluation.schemas import DEFAULT_CONFIG, EvaluationRequest, RAGConfig
from ragdoctor.generation.oracle import AnsweringOracle, LLMProvider, OracleError, create_oracle
from ragdoctor.ingestion.documents import Document
from ragdoctor.logging import configure_logging, get_logger

logger = get_logger(__name__, component="api")

OracleFactory = Callable[[str | None, LLMProvider | None], AnsweringOracle]


class DocumentIn(BaseModel):
    id: str
    name: str
    text: str
    size: int = Field(default=0, ge=0)


class EvaluateBody(BaseModel):
    documents: list[DocumentIn] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    config: RAGConfig = DEFAULT_CONFIG
    api_key: str | None = Field(default=None, description="Provider key; detected by prefix")
    provider: LLMProvider | None = None


def get_oracle_factory() -> OracleFactory:
    """Dependency returning how oracles are built; overridden in tests."""
    return lambda api_key, provider: create_oracle(api_key=api_key, provider=provider)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="RAG Doctor",
    version=__version__,
    description="Evaluate a RAG configuration against a baseline and diagnose its failures.",
    lifespan=lifespan,
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "version": __version__}


@app.get("/sample-questions")
def sample_questions() -> dict:
    return {"questions": SAMPLE_QUESTIONS, "description": SAMPLE_QUESTIONS_DESCRIPTION}


@app.post("/evaluate")
def evaluate_endpoint(
        body: EvaluateBody,
        oracle_factory: OracleFactory = Depends(get_oracle_factory),
) -> dict:
    request = EvaluationRequest(
        documents=[Document(id=d.id, name=d.name, text=d.text, size=d.size) for d in body.documents],
        questions=body.questions,
        config=body.config,
    )

    try:
        validate_request(request)
        oracle = oracle_factory(body.api_key, body.provider)
        response = evaluate(request, oracle=oracle)
    except EvaluationInputError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except OracleError as e:
        logger.error("evaluation_failed", provider=e.provider, error=str(e), cause=repr(e.__cause__))
        raise HTTPException(status_code=502, detail=str(e)) from e
    except EvaluationTimeoutError as e:
        logger.error("evaluation_timed_out", error=str(e))
        raise HTTPException(status_code=504, detail=str(e)) from e
    except ValueError as e:
        # create_oracle: no usable API key
        raise HTTPException(status_code=400, detail=str(e)) from e

    return response.to_dict()
