"""
Error kinds raised by the task core and the store, and their HTTP mapping.

The services never catch these; the exception handlers registered in
``app.main`` render them, and request parsing failures, using the same
envelope as the security middleware:

    {"error": {"code": ..., "message": ..., "status": ...}}
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

log = structlog.get_logger()


class TaskAppError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TaskAppError):
    """The task does not exist for this owner."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(TaskAppError):
    """Malformed input that passed request parsing (bad due date, blank title)."""

    status_code = 400
    code = "VALIDATION_FAILED"


class StoreError(TaskAppError):
    """Any failure from the persistence layer."""

    status_code = 500
    code = "STORE_ERROR"


class InvalidQueryError(StoreError):
    """The store rejected the query itself, e.g. an unknown sort field."""

    status_code = 400
    code = "INVALID_QUERY"


def error_body(code: str, message: str, status: int) -> dict:
    return {"error": {"code": code, "message": message, "status": status}}


async def handle_task_app_error(request: Request, exc: TaskAppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request.failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        log.info("request.rejected", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.status_code),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request parsing failures as a 400 ValidationError envelope."""
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path"))
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    message = "; ".join(problems) or "Invalid request"
    log.info("request.rejected", path=request.url.path, code=ValidationError.code, error=message)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=error_body(ValidationError.code, message, ValidationError.status_code),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskAppError, handle_task_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
