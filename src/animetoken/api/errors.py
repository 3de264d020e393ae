"""JSON envelope rendering for domain errors.

Every route answers ``{"success": true, ...payload}`` or
``{"success": false, "error": <message>, "code": <code>}``. Logical failures
use HTTP 200 so clients handle them uniformly; ``AuthError`` uses 401 and
``InternalError`` 500.
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from animetoken.services.exceptions import AppError, InternalError, ValidationError

logger = structlog.get_logger()


def success(**payload: Any) -> dict[str, Any]:
    return {"success": True, **payload}


def error_response(exc: AppError) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": exc.message, "code": exc.code}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic body validation failures as a ValidationError envelope."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        if location and first.get("type") == "missing":
            message = f"Missing required field: {location}"
    else:
        message = "Invalid request"
    logger.info("request.validation_failed", path=request.url.path, error=message)
    return error_response(ValidationError(message))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "request.unhandled_error",
        path=request.url.path,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_response(InternalError("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
