"""Hybrid rate limiting middleware.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Authenticated callers are limited per bearer token (``user:<token>``).
  Distinct tokens form distinct buckets, even for the same account.
- Anonymous callers are limited per client IP (``ip:<address>``), preferring
  the first X-Forwarded-For entry over the transport peer address.
- CORS pre-flight requests and the liveness check are never counted.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitExceededAppError
from app.core.exception_handlers import rate_limit_exceeded_response
from app.core.security import extract_bearer_token

logger = logging.getLogger(__name__)

EXEMPT_METHODS = frozenset({"OPTIONS"})
EXEMPT_PATHS = frozenset({"/health"})

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait before making more requests."


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.rate_limit.max_requests,
        settings.rate_limit.window_ms,
        settings.rate_limit.max_buckets,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryWindowRateLimiter(
            max_requests=settings.rate_limit.max_requests,
            window_ms=settings.rate_limit.window_ms,
            max_buckets=settings.rate_limit.max_buckets,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next request builds a fresh one."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def resolve_client_ip(request: Request) -> str:
    """Resolve the caller address, preferring the first X-Forwarded-For entry."""

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def build_rate_limit_key(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced limiter key.
    """

    token = extract_bearer_token(request.headers.get("authorization"))
    if token:
        return f"user:{token}"
    return f"ip:{resolve_client_ip(request)}"


def is_exempt(request: Request) -> bool:
    """Pre-flight requests and the health endpoint bypass the limiter."""

    return request.method.upper() in EXEMPT_METHODS or request.url.path in EXEMPT_PATHS


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing secrets."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def format_window(window_ms: int) -> str:
    """Render a window length the way clients see it (``"900s"``)."""

    seconds = window_ms / 1000
    if seconds.is_integer():
        return f"{int(seconds)}s"
    return f"{seconds}s"


def build_rate_limit_error(result: RateLimitResult) -> RateLimitExceededAppError:
    """Translate a blocked admission into the domain error."""

    return RateLimitExceededAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_MESSAGE,
        details={
            "window": format_window(result.window_ms),
            "max_requests": result.limit,
            "retry_after": result.retry_after_seconds or 0,
        },
    )


def _rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(int(result.reset_at_ms // 1000)),
    }


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing the hybrid rate limit.

    Admitted requests are forwarded unmodified. Rejected requests get a 429
    whose body carries the configured window and max request count so
    clients can back off.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response, or a 429 when throttled.
    """

    if not settings.rate_limit.enabled or is_exempt(request):
        return await call_next(request)

    limiter = get_rate_limiter()
    key = build_rate_limit_key(request)
    key_type = key.split(":", 1)[0]
    key_hash = _hash_limiter_key(key)

    result = limiter.admit(key)
    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_type": key_type,
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_ms": result.window_ms,
            },
        )
        return await call_next(request)

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_type": key_type,
            "key_hash": key_hash,
            "limit": result.limit,
            "count": result.count,
            "window_ms": result.window_ms,
            "retry_after_s": result.retry_after_seconds,
            "request_path": request.url.path,
        },
    )

    headers = _rate_limit_headers(result) if settings.rate_limit.include_headers else None
    return rate_limit_exceeded_response(build_rate_limit_error(result), headers=headers)
