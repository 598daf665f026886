"""Application-level exception types.

This module defines the errors raised at the HTTP boundary, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context sent to clients with quota errors."""

    limit: int
    reset_time: int
    retry_after: int


@dataclass
class AppError(Exception):
    """Base error for application failures.

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


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client has used up its request window.

    Attributes:
        headers: Response headers describing the quota (Retry-After, X-RateLimit-*).
    """

    headers: dict[str, str] | None = None
