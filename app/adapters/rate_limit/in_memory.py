"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = 15 * 60 * 1000
DEFAULT_MAX_REQUESTS = 100


@dataclass
class _WindowState:
    count: int
    reset_time: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per identifier.

    A window opens on the first request from an identifier (or the first one
    after the previous window ended) and lasts ``window_ms``. At most
    ``max_requests`` requests are allowed inside it.

    Important:
        Windows are fixed, not sliding. A client can get up to
        ``2 * max_requests`` requests through around a window boundary:
        the last slots of one window followed immediately by a fresh window.
    """

    def __init__(
        self,
        *,
        window_ms: int = DEFAULT_WINDOW_MS,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        clock: Clock = epoch_ms,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            window_ms: Length of a window in milliseconds.
            max_requests: Maximum number of allowed requests per window.
            clock: Time source returning UNIX time in milliseconds.

        Raises:
            ValueError: If window_ms or max_requests are invalid.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")

        self._window_ms = int(window_ms)
        self._max_requests = int(max_requests)
        self._clock = clock
        self._lock = threading.RLock()
        self._windows: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryFixedWindowRateLimiter(window_ms={self._window_ms}, "
            f"max_requests={self._max_requests}, windows={len(self._windows)})"
        )

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def _now(self) -> int:
        return int(self._clock())

    def is_allowed(self, identifier: str) -> RateLimitResult:
        """Record a request for the identifier and decide whether it may proceed.

        Args:
            identifier: Stable client identifier. Not validated; rotating
                identifiers simply get fresh windows.

        Returns:
            RateLimitResult with the decision, remaining quota and reset time.
        """
        now = self._now()

        with self._lock:
            window = self._windows.get(identifier)

            if window is None or now > window.reset_time:
                window = _WindowState(count=1, reset_time=now + self._window_ms)
                self._windows[identifier] = window
                return RateLimitResult(
                    allowed=True,
                    limit=self._max_requests,
                    remaining=self._max_requests - 1,
                    reset_time=window.reset_time,
                )

            if window.count >= self._max_requests:
                return RateLimitResult(
                    allowed=False,
                    limit=self._max_requests,
                    remaining=0,
                    reset_time=window.reset_time,
                    retry_after_seconds=max(0, math.ceil((window.reset_time - now) / 1000)),
                )

            window.count += 1
            return RateLimitResult(
                allowed=True,
                limit=self._max_requests,
                remaining=self._max_requests - window.count,
                reset_time=window.reset_time,
            )

    def cleanup(self) -> int:
        """Remove every window whose reset time has passed.

        Returns:
            Number of windows removed.
        """
        now = self._now()

        with self._lock:
            expired = [key for key, window in self._windows.items() if now > window.reset_time]
            for key in expired:
                del self._windows[key]
            remaining = len(self._windows)

        if expired:
            logger.debug(
                "rate_limit.cleanup",
                extra={"removed": len(expired), "windows": remaining},
            )
        return len(expired)

    def stats(self) -> dict[str, int]:
        """Return limiter configuration and the number of tracked windows."""

        with self._lock:
            return {
                "windows": len(self._windows),
                "max_requests": self._max_requests,
                "window_ms": self._window_ms,
            }
