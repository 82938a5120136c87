"""Response payloads of the HTTP API that are not domain contracts."""

from __future__ import annotations

from http import HTTPStatus

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from annals.core.errors import FailureKind
from annals.core.result import Failure

FAILURE_STATUS: dict[FailureKind, int] = {
    FailureKind.UNAUTHORIZED: HTTPStatus.UNAUTHORIZED,
    FailureKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    FailureKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    FailureKind.CONFLICT: HTTPStatus.CONFLICT,
    FailureKind.STORE_UNAVAILABLE: HTTPStatus.BAD_GATEWAY,
}


class ErrorBody(BaseModel):
    """Uniform error payload: ``{"error", "detail", "field"}``."""

    error: str = Field(description="Machine-readable failure kind")
    detail: str
    field: str | None = None


class DeleteResult(BaseModel):
    success: bool = True


class Health(BaseModel):
    status: str = "ok"
    environment: str
    version: str


def failure_response(failure: Failure) -> JSONResponse:
    """Render a service failure with its mapped HTTP status."""
    body = ErrorBody(error=failure.kind.value, detail=failure.message, field=failure.field)
    return JSONResponse(status_code=FAILURE_STATUS[failure.kind], content=body.model_dump())


__all__ = ["DeleteResult", "ErrorBody", "FAILURE_STATUS", "Health", "failure_response"]
