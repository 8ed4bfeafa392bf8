"""
Shape Validator: FastAPI Server
================================

RESTful API for validating JSON values against schema documents.

Endpoints:
    POST /validate          Validate one value against a schema document
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from shape_validator import __version__
from shape_validator.exceptions import SchemaError, ValidationFailure
from shape_validator.settings import load_settings
from shape_validator.validator import ValidatorFactory

load_dotenv()

logger = logging.getLogger(__name__)


# ─── Application Lifespan (build the factory once) ──────────────────

_factory: ValidatorFactory | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the validator factory (frozen tag registry) on startup."""
    global _factory  # noqa: PLW0603
    _factory = load_settings().build_factory()
    yield
    _factory = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Shape Validator API",
    description=(
        "Validate decoded JSON values against compact schema documents: "
        "nested objects, unions, intersections, arrays, literals, and "
        "tag-refined primitives with custom error messages."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ValidateRequest(BaseModel):
    """Request body for the /validate endpoint."""

    schema_document: Union[dict[str, Any], str] = Field(
        ...,
        alias="schema",
        description="Schema document: a node, a property map, or its JSON text.",
        json_schema_extra={
            "example": {
                "age": {
                    "type": "number",
                    "optional": False,
                    "primitive": True,
                    "tags": [["min", "0"], ["max", "99"]],
                }
            }
        },
    )
    value: Any = Field(None, description="The decoded value to validate.")


class FailureOut(BaseModel):
    """Why the value was rejected."""

    code: str
    message: str
    path: list[Union[str, int]]
    details: dict[str, Any] = Field(default_factory=dict)


class ValidateResponse(BaseModel):
    """Outcome of one validation call."""

    valid: bool
    error: Optional[FailureOut] = None

    model_config = {"json_schema_extra": {"example": {
        "valid": False,
        "error": {
            "code": "TAG_VIOLATION",
            "message": "Value 150 failed tag @max 99",
            "path": ["age"],
            "details": {"path": ["age"], "tag": "max", "argument": "99"},
        },
    }}}


class HealthResponse(BaseModel):
    status: str
    version: str
    throw_on_failure: bool
    max_depth: int
    rules: dict[str, list[str]]


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_factory() -> ValidatorFactory:
    if _factory is None:
        raise HTTPException(status_code=503, detail="Validator not initialised")
    return _factory


def _failure_out(failure: ValidationFailure) -> FailureOut:
    return FailureOut(
        code=failure.code,
        message=failure.message,
        path=list(failure.path),
        details=failure.details,
    )


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/validate",
    summary="Validate a value against a schema document",
    tags=["Validation"],
    responses={
        422: {"description": "Schema document is malformed"},
        503: {"description": "Validator not yet initialised"},
    },
)
def validate_value(request: ValidateRequest) -> ValidateResponse:
    """Validate `value` against `schema`.

    Returns:
    - **valid**: `true` if the value matches the schema
    - **error**: the first failure (code, message, path) when it does not
    """
    factory = _get_factory()
    try:
        validator = factory(request.schema_document)
        failure = validator.check(request.value)
    except SchemaError as exc:
        logger.info("Rejected schema: [%s] %s", exc.code, exc)
        raise HTTPException(status_code=422, detail=exc.message)

    if failure is None:
        return ValidateResponse(valid=True)
    return ValidateResponse(valid=False, error=_failure_out(failure))


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Validator not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and configuration info."""
    factory = _get_factory()
    return HealthResponse(
        status="healthy",
        version=__version__,
        throw_on_failure=factory.throw_on_failure,
        max_depth=factory.max_depth,
        rules=factory.registry.rule_names(),
    )
