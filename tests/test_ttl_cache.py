"""Unit tests for the in-memory TTLCache."""

import threading
from unittest.mock import Mock

from app.utils.ttl_cache import TTLCache, build_cache_key


class FakeClock:
    """Deterministic epoch-millisecond clock used to test expiration logic."""

    def __init__(self, start: int = 0) -> None:
        self.current = start

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


def test_build_cache_key_is_stable_and_order_independent() -> None:
    key1 = build_cache_key("books", {"page": 1, "search": "dune"})
    key2 = build_cache_key("books", {"search": "dune", "page": 1})
    key3 = build_cache_key("books", {"page": 2, "search": "dune"})

    assert key1 == key2
    assert key1 != key3
    assert key1.startswith("books:")
    assert build_cache_key("analytics") == "analytics:{}"


def test_set_then_get_returns_value() -> None:
    cache = TTLCache(clock=FakeClock())
    payload = [{"id": 1, "title": "Dune"}]

    cache.set("books:p1", payload, 60)

    assert cache.get("books:p1") is payload


def test_get_missing_key_is_a_miss() -> None:
    cache = TTLCache()

    assert cache.get("never-set") is None
    assert cache.stats()["misses"] == 1


def test_default_ttl_is_five_minutes() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v")

    clock.advance(300_000)
    assert cache.get("k") == "v"

    clock.advance(1)
    assert cache.get("k") is None


def test_entry_fresh_until_ttl_then_miss() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("books:p1", ["a", "b"], 300)

    clock.current = 299_000
    assert cache.get("books:p1") == ["a", "b"]

    clock.current = 300_001
    assert cache.get("books:p1") is None


def test_expired_entry_is_removed_on_read() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", {"data": True}, 1)

    clock.advance(1_100)
    assert "k" in cache

    assert cache.get("k") is None
    assert "k" not in cache
    assert cache.stats()["expirations"] == 1


def test_reads_do_not_refresh_ttl() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "v", 10)

    for _ in range(5):
        clock.advance(2_000)
        assert cache.get("k") == "v"

    clock.advance(1)
    assert cache.get("k") is None


def test_set_overwrites_and_restarts_ttl() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("k", "old", 10)

    clock.advance(9_000)
    cache.set("k", "new", 10)

    clock.advance(9_000)
    assert cache.get("k") == "new"


def test_keys_are_independent() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("short", 1, 1)
    cache.set("long", 2, 60)

    cache.set("long-2", 3, 60)
    cache.set("long-2", 4, 60)
    clock.advance(2_000)

    assert cache.get("short") is None
    assert cache.get("long") == 2
    assert cache.get("long-2") == 4


def test_delete_and_clear() -> None:
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0
    assert cache.stats() == {"entries": 0, "hits": 0, "misses": 0, "expirations": 0}


def test_cleanup_removes_only_expired_entries() -> None:
    clock = FakeClock()
    cache = TTLCache(clock=clock)
    cache.set("stale-1", 1, 1)
    cache.set("stale-2", 2, 1)
    cache.set("fresh", 3, 60)
    assert len(cache) == 3

    clock.advance(1_500)
    assert cache.cleanup() == 2

    assert len(cache) == 1
    assert cache.get("fresh") == 3
    assert cache.cleanup() == 0


def test_falsy_values_are_hits() -> None:
    cache = TTLCache(clock=Mock(return_value=0))
    cache.set("zero", 0)
    cache.set("empty", [])

    assert cache.get("zero") == 0
    assert cache.get("empty") == []
    assert cache.stats()["hits"] == 2


def test_thread_safety_under_concurrent_sets() -> None:
    cache = TTLCache()
    total_keys = 50

    def _writer(idx: int) -> None:
        cache.set(f"k-{idx}", {"v": idx}, 30)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(total_keys)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.stats()["entries"] == total_keys
    assert cache.get("k-0") == {"v": 0}
    assert cache.get("k-49") == {"v": 49}


def test_configured_default_ttl_applies_when_ttl_omitted() -> None:
    clock = FakeClock()
    cache = TTLCache(default_ttl_seconds=2, clock=clock)
    cache.set("default", "v")
    cache.set("explicit", "w", 10)

    clock.advance(2_001)

    assert cache.get("default") is None
    assert cache.get("explicit") == "w"
