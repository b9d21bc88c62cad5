"""Global exception handlers for consistent error responses.

Every error leaves the API as ``{"ok": false, "error": "<message>"}`` with
``Cache-Control: no-store``, matching the success envelope
``{"ok": true, ...}`` used by the routes.

Design:
- AppError subclasses → mapped HTTP status (400, 401, 429, 500, upstream)
- Request validation errors → 400
- Unexpected Exception → generic 500 (safety net, nothing leaked)
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    ConfigurationAppError,
    RateLimitExceededError,
    UpstreamAppError,
    ValidationAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}


def error_response(message: str, status_code: int, headers: dict[str, str] | None = None) -> JSONResponse:
    """Build the standard error envelope."""

    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message},
        headers={**NO_STORE, **(headers or {})},
    )


def _status_for(exc: AppError) -> int:
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, RateLimitExceededError):
        return 429
    if isinstance(exc, UpstreamAppError):
        return int((exc.details or {}).get("http_status", 502))
    if isinstance(exc, ConfigurationAppError):
        return 500
    return 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with the standard envelope.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the mapped status code and any extra headers the
        error carries (e.g. ``Retry-After`` on 429).
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "request_path": request.url.path,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        },
    )

    return error_response(exc.message, status_code, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render FastAPI's query/path validation failures as a 400."""

    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(exc.errors()),
            "request_id": get_request_id(),
        },
    )
    return error_response("Invalid request", 400)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs the failure for debugging while returning a generic message, so no
    stack trace or internal detail reaches the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return error_response("Internal server error", 500)


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with a FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
