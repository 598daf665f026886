"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiter adapter into the HTTP layer.

- Routes depend on ``enforce_rate_limit`` only; the limiter instance lives on
  ``app.state`` and is built by the application factory.
- Clients are identified by source address: the connection peer first, then
  the first ``X-Forwarded-For`` hop, then ``"anonymous"``.
- Allowed responses carry ``X-RateLimit-*`` headers; denials become HTTP 429
  via ``RateLimitAppError``.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.core.config import Settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

ANONYMOUS_CLIENT = "anonymous"


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""
    return request.app.state.rate_limiter


def resolve_client_identifier(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: Namespaced limiter key (``ip:<address>``).
    """

    if request.client and request.client.host:
        return f"ip:{request.client.host}"

    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return f"ip:{first_hop}"

    return f"ip:{ANONYMOUS_CLIENT}"


def _hash_identifier(identifier: str) -> str:
    """Hash the limiter key for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Translate a limiter decision into response headers.

    ``X-RateLimit-Reset`` is the window end in epoch milliseconds.
    ``Retry-After`` is only present on denials.
    """

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_time),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_seconds or 0)
    return headers


def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing the per-client rate limit.

    Consumes one request from the caller's window. Quota headers are copied
    onto the route's response when enabled.

    Args:
        request: FastAPI request.
        response: Response the route's return value is rendered into.

    Raises:
        RateLimitAppError: When the caller's window is exhausted.
    """

    app_settings: Settings = request.app.state.settings
    if not app_settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    identifier = resolve_client_identifier(request)
    result = limiter.is_allowed(identifier)
    include_headers = app_settings.app.rate_limit_include_headers

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": _hash_identifier(identifier),
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_time": result.reset_time,
            },
        )
        if include_headers:
            response.headers.update(build_rate_limit_headers(result))
        return

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": _hash_identifier(identifier),
            "limit": result.limit,
            "reset_time": result.reset_time,
            "retry_after_s": retry_after,
            "request_path": request.url.path,
        },
    )

    if include_headers:
        headers = build_rate_limit_headers(result)
    else:
        headers = {"Retry-After": str(retry_after)}

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Too many requests. Please try again later.",
        details={
            "limit": result.limit,
            "reset_time": result.reset_time,
            "retry_after": retry_after,
        },
        headers=headers,
    )
