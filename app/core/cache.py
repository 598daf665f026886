"""Response cache dependency for FastAPI routes.

Handlers look up a key built with ``build_cache_key`` before doing their own
work and store the result with an explicit TTL afterwards:

    cache = Depends(get_response_cache)
    key = build_cache_key("books", filters)
    cached = cache.get(key)
    if cached is None:
        cached = compute()
        cache.set(key, cached, ttl_seconds=300)
"""

from __future__ import annotations

from fastapi import Request

from app.utils.ttl_cache import TTLCache


def get_response_cache(request: Request) -> TTLCache:
    """Return the cache owned by the running application."""
    return request.app.state.response_cache
