"""In-memory TTL cache used to avoid repeating expensive backend queries.

Each entry carries its own TTL. Expired entries are never returned: ``get``
drops them on read and ``cleanup`` sweeps the ones nobody reads again.
Reads do not extend an entry's lifetime and there is no size bound.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping

from app.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


@dataclass
class CacheEntry:
    """Container for cached values with expiration metadata."""

    data: Any
    stored_at: int
    ttl: int

    def is_expired(self, now: int) -> bool:
        return now - self.stored_at > self.ttl


class TTLCache:
    """Thread-safe, in-memory cache with per-entry time-to-live."""

    def __init__(
        self,
        *,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock = epoch_ms,
    ) -> None:
        if default_ttl_seconds < 0:
            raise ValueError("default_ttl_seconds must be >= 0")

        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        # Raw presence, expired or not.
        with self._lock:
            return key in self._store

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"TTLCache(size={len(self._store)}, hits={self._hits}, "
            f"misses={self._misses}, expirations={self._expirations})"
        )

    def _now(self) -> int:
        return int(self._clock())

    def get(self, key: str) -> Any | None:
        """Retrieve a cached value if it exists and is not expired.

        Args:
            key: Cache key.

        Returns:
            Cached value, or None if not found or expired.
        """

        now = self._now()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                logger.debug("cache.miss", extra={"cache_key": key[:64], "reason": "not_found"})
                return None

            if entry.is_expired(now):
                del self._store[key]
                self._misses += 1
                self._expirations += 1
                logger.debug("cache.miss", extra={"cache_key": key[:64], "reason": "expired"})
                return None

            self._hits += 1
            logger.debug("cache.hit", extra={"cache_key": key[:64]})
            return entry.data

    @property
    def default_ttl_seconds(self) -> float:
        return self._default_ttl

    def set(self, key: str, data: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key.
            data: Value to store; opaque to the cache.
            ttl_seconds: Lifetime of the entry in seconds; the cache's
                default TTL when omitted.
        """

        if ttl_seconds is None:
            ttl_seconds = self._default_ttl
        entry = CacheEntry(data=data, stored_at=self._now(), ttl=int(ttl_seconds * 1000))
        with self._lock:
            self._store[key] = entry
            size = len(self._store)

        logger.debug(
            "cache.set",
            extra={"cache_key": key[:64], "size": size, "ttl_s": ttl_seconds},
        )

    def delete(self, key: str) -> None:
        """Remove a single entry; missing keys are ignored."""

        with self._lock:
            self._store.pop(key, None)

    def clear(self) -> None:
        """Remove all cached entries and reset counters."""

        with self._lock:
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._expirations = 0

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """

        now = self._now()
        with self._lock:
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            self._expirations += len(expired)
            size = len(self._store)

        if expired:
            logger.debug("cache.cleanup", extra={"removed": len(expired), "size": size})
        return len(expired)

    def stats(self) -> dict[str, int]:
        """Return lightweight cache metrics without exposing values."""

        with self._lock:
            return {
                "entries": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "expirations": self._expirations,
            }


def build_cache_key(namespace: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a stable cache key from a namespace and query parameters.

    Args:
        namespace: Logical resource name (e.g., "books").
        params: Query parameters that shape the result. Order does not matter.

    Returns:
        Key of the form ``"<namespace>:<json-params>"``.

    Examples:
        >>> build_cache_key("books", {"page": 1, "search": "dune"})
        'books:{"page": 1, "search": "dune"}'
    """

    serialized = json.dumps(dict(params or {}), sort_keys=True, default=str)
    return f"{namespace}:{serialized}"
