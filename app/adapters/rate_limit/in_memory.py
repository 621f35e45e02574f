"""In-memory per-identity window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Each bucket's window starts at that identity's first request, not on a
  wall-clock boundary.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

logger = logging.getLogger(__name__)


def _epoch_ms() -> float:
    return time.time() * 1000


@dataclass
class RateBucket:
    """Request counter for one identity."""

    count: int
    window_start: float


class InMemoryWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identity over a rolling window.

    A bucket is created on the first request from a key. Once more than
    ``window_ms`` has elapsed since the bucket's ``window_start`` the next
    request resets it. Rejected requests still increment the counter, so
    a client hammering the API keeps counting against its window.

    Buckets are kept in least-recently-touched order. When the map grows
    past ``max_buckets``, expired buckets at the stale end are swept up to
    the first live one; if that is not enough the oldest buckets are dropped.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_ms: int,
        max_buckets: int | None = 10_000,
        clock: Callable[[], float] = _epoch_ms,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            max_requests: Maximum number of admitted requests per window.
            window_ms: Window length in milliseconds.
            max_buckets: Bucket count that triggers a sweep (None disables it).
            clock: Time source returning epoch milliseconds.

        Raises:
            ValueError: If max_requests, window_ms or max_buckets are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_buckets is not None and max_buckets < 1:
            raise ValueError("max_buckets must be >= 1")

        self._max_requests = max_requests
        self._window_ms = window_ms
        self._max_buckets = max_buckets
        self._clock = clock
        self._lock = threading.RLock()
        self._buckets: OrderedDict[str, RateBucket] = OrderedDict()
        self._evictions = 0

    @property
    def limit(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def admit(self, key: str, now: float | None = None) -> RateLimitResult:
        """Count one request for ``key`` and decide whether to admit it.

        The window check and the increment happen under one lock so two
        requests from the same identity never race on the counter.

        Args:
            key: Identity key for rate limiting.
            now: Epoch milliseconds; defaults to the limiter's clock.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        if now is None:
            now = self._clock()

        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None or now - bucket.window_start > self._window_ms:
                bucket = RateBucket(count=1, window_start=now)
                self._buckets[key] = bucket
                self._buckets.move_to_end(key)
                self._evict_if_over_capacity_locked(now)
            else:
                bucket.count += 1
                self._buckets.move_to_end(key)

            return self._build_result(bucket, now)

    def bucket(self, key: str) -> RateBucket | None:
        """Return a copy of the bucket for ``key`` (None if never seen or evicted)."""
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return None
            return RateBucket(count=bucket.count, window_start=bucket.window_start)

    def reset(self) -> None:
        """Forget every bucket."""
        with self._lock:
            self._buckets.clear()
            self._evictions = 0

    def stats(self) -> dict[str, int | None]:
        """Return lightweight limiter metrics without exposing keys."""
        with self._lock:
            return {
                "buckets": len(self._buckets),
                "max_buckets": self._max_buckets,
                "evictions": self._evictions,
                "max_requests": self._max_requests,
                "window_ms": self._window_ms,
            }

    def _build_result(self, bucket: RateBucket, now: float) -> RateLimitResult:
        reset_at = bucket.window_start + self._window_ms
        allowed = bucket.count <= self._max_requests
        retry_after = None
        if not allowed:
            retry_after = max(0, int(math.ceil((reset_at - now) / 1000)))
        return RateLimitResult(
            allowed=allowed,
            limit=self._max_requests,
            count=bucket.count,
            remaining=max(0, self._max_requests - bucket.count),
            window_ms=self._window_ms,
            reset_at_ms=reset_at,
            retry_after_seconds=retry_after,
        )

    def _evict_if_over_capacity_locked(self, now: float) -> None:
        if self._max_buckets is None or len(self._buckets) <= self._max_buckets:
            return

        # Walk from the least recently touched end; stop at the first live bucket
        while self._buckets:
            key, bucket = next(iter(self._buckets.items()))
            if now - bucket.window_start <= self._window_ms:
                break
            del self._buckets[key]
            self._evictions += 1

        while len(self._buckets) > self._max_buckets:
            # popitem(last=False) removes the least recently touched bucket
            self._buckets.popitem(last=False)
            self._evictions += 1

        logger.debug(
            "rate_limit.buckets_evicted",
            extra={"buckets": len(self._buckets), "evictions": self._evictions},
        )
