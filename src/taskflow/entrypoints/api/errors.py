"""Mapping of domain errors to HTTP responses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.core.exceptions import ErrorCode, TaskflowError

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_ROLE: 400,
    ErrorCode.INVITE_REQUIRED: 400,
    ErrorCode.INVITE_ALREADY_USED: 400,
    ErrorCode.INVITE_EXPIRED: 400,
    ErrorCode.INVITE_REDEEMED: 400,
    ErrorCode.EMAIL_TAKEN: 400,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.TOKEN_MISSING: 401,
    ErrorCode.TOKEN_INVALID: 403,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.INVITE_NOT_FOUND: 404,
    ErrorCode.USER_NOT_FOUND: 404,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


def status_for(error: TaskflowError) -> int:
    """HTTP status code for a domain error."""
    return STATUS_BY_CODE.get(error.code, 500)


def _field_name(loc: tuple[Any, ...] | list[Any]) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI adds
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts)


async def taskflow_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a TaskflowError as ``{message, code}``."""
    if not isinstance(exc, TaskflowError):
        raise exc
    status_code = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render request validation failures as 400 with per-field messages."""
    if not isinstance(exc, RequestValidationError):
        raise exc
    errors = [
        {"field": _field_name(error.get("loc", ())), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={
            "message": "Validation failed",
            "code": ErrorCode.VALIDATION_ERROR.value,
            "errors": errors,
        },
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render framework HTTP errors (404 route, 405 method) as ``{message}``."""
    if not isinstance(exc, StarletteHTTPException):
        raise exc
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log and hide anything unexpected behind a generic 500."""
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on ``app``."""
    app.add_exception_handler(TaskflowError, taskflow_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
