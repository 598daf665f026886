"""Unit tests for the in-memory fixed-window rate limiter."""

import threading
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter


def test_defaults_are_fifteen_minutes_and_one_hundred_requests() -> None:
    limiter = InMemoryFixedWindowRateLimiter()

    assert limiter.window_ms == 15 * 60 * 1000
    assert limiter.max_requests == 100


def test_allows_up_to_limit_with_decreasing_remaining() -> None:
    clock = Mock(return_value=1_000)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=60_000, max_requests=3, clock=clock)

    remaining = [limiter.is_allowed("k") for _ in range(3)]

    assert all(r.allowed for r in remaining)
    assert [r.remaining for r in remaining] == [2, 1, 0]
    assert {r.reset_time for r in remaining} == {61_000}


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1_000)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=60_000, max_requests=2, clock=clock)

    assert limiter.is_allowed("k").allowed is True
    assert limiter.is_allowed("k").allowed is True

    clock.return_value = 31_000
    blocked = limiter.is_allowed("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    assert blocked.reset_time == 61_000
    assert blocked.retry_after_seconds == 30


def test_denied_request_does_not_extend_or_count() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=1, clock=clock)

    limiter.is_allowed("k")
    for t in (100, 500, 1_000):
        clock.return_value = t
        assert limiter.is_allowed("k").allowed is False

    clock.return_value = 1_001
    assert limiter.is_allowed("k").allowed is True


def test_concrete_window_sequence() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=2, clock=clock)

    first = limiter.is_allowed("client")
    assert (first.allowed, first.remaining, first.reset_time) == (True, 1, 1_000)

    clock.return_value = 100
    second = limiter.is_allowed("client")
    assert (second.allowed, second.remaining) == (True, 0)

    clock.return_value = 200
    third = limiter.is_allowed("client")
    assert (third.allowed, third.remaining, third.reset_time) == (False, 0, 1_000)

    clock.return_value = 1_001
    fourth = limiter.is_allowed("client")
    assert (fourth.allowed, fourth.remaining, fourth.reset_time) == (True, 1, 2_001)


def test_window_still_open_at_exact_reset_time() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=1, clock=clock)
    limiter.is_allowed("k")

    clock.return_value = 1_000
    assert limiter.is_allowed("k").allowed is False


def test_fixed_window_allows_burst_across_boundary() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=3, clock=clock)

    limiter.is_allowed("k")
    clock.return_value = 990
    late = [limiter.is_allowed("k").allowed for _ in range(2)]

    clock.return_value = 1_001
    early = [limiter.is_allowed("k").allowed for _ in range(3)]

    # Five requests within ~11ms are all admitted
    assert late == [True, True]
    assert early == [True, True, True]


def test_isolated_by_identifier() -> None:
    clock = Mock(return_value=1_000)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=60_000, max_requests=1, clock=clock)

    assert limiter.is_allowed("k1").allowed is True
    assert limiter.is_allowed("k1").allowed is False

    assert limiter.is_allowed("k2").allowed is True


def test_empty_identifier_is_not_rejected() -> None:
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=1, clock=Mock(return_value=0))

    assert limiter.is_allowed("").allowed is True
    assert limiter.is_allowed("").allowed is False


def test_cleanup_removes_only_expired_windows() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=1_000, max_requests=5, clock=clock)

    limiter.is_allowed("old")
    clock.return_value = 500
    limiter.is_allowed("fresh")
    assert len(limiter) == 2

    clock.return_value = 1_001
    removed = limiter.cleanup()

    assert removed == 1
    assert len(limiter) == 1
    assert limiter.stats()["windows"] == 1

    # "fresh" kept its count
    for _ in range(3):
        limiter.is_allowed("fresh")
    assert limiter.is_allowed("fresh").remaining == 0


def test_cleanup_is_idempotent() -> None:
    clock = Mock(return_value=0)
    limiter = InMemoryFixedWindowRateLimiter(window_ms=10, max_requests=1, clock=clock)
    limiter.is_allowed("k")

    clock.return_value = 11
    assert limiter.cleanup() == 1
    assert limiter.cleanup() == 0
    assert len(limiter) == 0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"window_ms": 0, "max_requests": 10},
        {"window_ms": 1_000, "max_requests": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_concurrent_calls_admit_exactly_max_requests() -> None:
    limiter = InMemoryFixedWindowRateLimiter(
        window_ms=60_000, max_requests=50, clock=Mock(return_value=0)
    )
    results: list[bool] = []
    results_lock = threading.Lock()
    start = threading.Barrier(10)

    def _worker() -> None:
        start.wait()
        for _ in range(20):
            allowed = limiter.is_allowed("k").allowed
            with results_lock:
                results.append(allowed)

    threads = [threading.Thread(target=_worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 200
    assert sum(results) == 50
    assert len(limiter) == 1
