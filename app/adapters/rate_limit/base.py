"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
in-process store can be replaced later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked,
            and also 0 for the allowed request that consumes the last slot).
        reset_time: UNIX epoch milliseconds when the current window ends.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def is_allowed(self, identifier: str) -> RateLimitResult:
        """Record a request for ``identifier`` and decide whether it may proceed.

        Args:
            identifier: Stable client identifier (e.g., source IP).

        Returns:
            RateLimitResult describing the decision and quota metadata.
        """
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Drop expired windows.

        Returns:
            Number of windows removed.
        """
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int]:
        """Return lightweight limiter metrics."""
        raise NotImplementedError
