"""Application-level exception types.

This module defines domain errors used across services and routes, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    product_id: int
    order_id: int
    required_roles: list[str]
    window: str
    max_requests: int
    retry_after: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class ConflictAppError(AppError):
    """Raised when a resource already exists (e.g., duplicate username)."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""


class AuthorizationAppError(AppError):
    """Raised when an authenticated caller lacks the required role."""


class NotFoundAppError(AppError):
    """Raised when a referenced resource does not exist."""


class OutOfStockAppError(AppError):
    """Raised when a product exists but has no stock left to reserve."""


class RateLimitExceededAppError(AppError):
    """Raised when an identity exceeds its request quota for the window."""
