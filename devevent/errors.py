"""Error types raised by the services and the handlers that render them.

Every error leaves the API as the same JSON body::

    {"error": "not_found", "detail": "Event not found", "context": {"slug": "x"}}

Field validation failures put the per-field messages under
``context.errors``, whether they come from the write path or from FastAPI's
request parsing.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

_ERROR_TYPES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    422: "validation_error",
    500: "internal_error",
    503: "service_unavailable",
}


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for errors with a fixed status and error type.

    Keyword arguments beyond ``detail`` and ``error_code`` are reported to the
    client as ``context``.
    """

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None, error_code: str | None = None, **context: Any) -> None:
        self.detail = detail or type(self).detail
        self.error_code = error_code
        self.context = context or None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class FieldValidationError(APIError):
    """One or more fields failed validation.

    ``errors`` maps every offending field to its message so that all
    violations are reported together.
    """

    status_code = 422
    error = "validation_error"
    detail = "Validation failed"

    def __init__(self, errors: dict[str, str], detail: str | None = None) -> None:
        self.errors = dict(errors)
        super().__init__(detail=detail, errors=self.errors)


class ConflictError(APIError):
    status_code = 409
    error = "conflict"
    detail = "Resource conflict"


class ServiceUnavailableError(APIError):
    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class DatabaseError(APIError):
    status_code = 500
    error = "database_error"
    detail = "Database operation failed"


def _status_to_error_type(status_code: int) -> str:
    return _ERROR_TYPES.get(status_code, "error")


def _render(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.detail)
    return _render(exc.status_code, exc.to_response())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    body = ErrorResponse(error=_status_to_error_type(exc.status_code), detail=str(exc.detail))
    return _render(exc.status_code, body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        errors.setdefault(field, err["msg"])
    return _render(422, FieldValidationError(errors).to_response())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _render(500, ErrorResponse(error="internal_error", detail=APIError.detail))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, general_exception_handler)
