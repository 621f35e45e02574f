"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 401, 403, 404)
- RateLimitExceededAppError → 429 with window/maxRequests for client back-off
- Unexpected Exception → generic 500 (safety net)
- All enveloped responses include request_id for distributed tracing
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    NotFoundAppError,
    RateLimitExceededAppError,
)
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)


_STATUS_BY_ERROR: tuple[tuple[type[AppError], int], ...] = (
    (AuthenticationAppError, 401),
    (AuthorizationAppError, 403),
    (NotFoundAppError, 404),
    (RateLimitExceededAppError, 429),
)


def status_code_for(exc: AppError) -> int:
    """Resolve the HTTP status code for a domain error.

    Anything not listed explicitly (validation, conflict, out-of-stock) is a
    client fault and maps to 400.
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def rate_limit_exceeded_response(
    exc: RateLimitExceededAppError,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the 429 response body clients use to back off.

    Args:
        exc: The rate limit error carrying window and max_requests details.
        headers: Optional Retry-After / X-RateLimit-* headers.

    Returns:
        JSONResponse with ``error``, ``window`` and ``maxRequests`` fields.
    """
    details = exc.details or {}
    return JSONResponse(
        status_code=429,
        content={
            "error": exc.message,
            "window": details.get("window"),
            "maxRequests": details.get("max_requests"),
        },
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses include:
    - error.code: Machine-readable error code
    - error.message: Human-readable message
    - error.request_id: For distributed tracing
    - error.details: Optional structured context

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
    )

    if isinstance(exc, RateLimitExceededAppError):
        return rate_limit_exceeded_response(exc)

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }

    # Include details only if present (optional structured context)
    if exc.details:
        error_content["details"] = exc.details

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Catches any exception not handled by specific handlers, storage failures
    included. Logs detailed information for debugging while returning a
    generic message; no stack traces reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
