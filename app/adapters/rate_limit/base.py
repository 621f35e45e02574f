"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the bucket store can be swapped later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single admission decision.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        count: Requests counted in the current window, this one included.
        remaining: Requests left in the current window (0 when blocked).
        window_ms: Window length in milliseconds.
        reset_at_ms: Epoch milliseconds when the current window expires.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    count: int
    remaining: int
    window_ms: int
    reset_at_ms: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Max requests per window."""
        raise NotImplementedError

    @property
    @abstractmethod
    def window_ms(self) -> int:
        """Window length in milliseconds."""
        raise NotImplementedError

    @abstractmethod
    def admit(self, key: str, now: float | None = None) -> RateLimitResult:
        """Count one request for ``key`` and decide whether to admit it.

        Args:
            key: Identity key (e.g., ``user:<token>`` or ``ip:<address>``).
            now: Epoch milliseconds; defaults to the limiter's clock.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
