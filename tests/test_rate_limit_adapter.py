"""Unit tests for the in-memory sliding-window rate limiter adapter."""

import threading
from collections import deque
from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.base import RateLimitConfig
from app.adapters.rate_limit.in_memory import (
    InMemorySlidingWindowRateLimiter,
    RateWindowCounter,
    SlidingWindowCounterStore,
    evaluate,
)


def _config(limit: int = 3, window: float = 60) -> RateLimitConfig:
    return RateLimitConfig(request_limit=limit, window_seconds=window)


def test_allows_up_to_limit_then_denies() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=3), clock=clock)

    assert [limiter.consume("k").allowed for _ in range(3)] == [True, True, True]

    blocked = limiter.consume("k")
    assert blocked.allowed is False
    assert blocked.retry_after_seconds == 60


def test_worked_example_retry_after() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=3, window=60), clock=clock)

    for t in (0.0, 1.0, 2.0):
        clock.return_value = t
        assert limiter.consume("A").allowed is True

    clock.return_value = 3.0
    denied = limiter.consume("A")
    assert denied.allowed is False
    assert denied.retry_after_seconds == 57

    assert limiter.consume("B").allowed is True


def test_denied_requests_are_not_recorded() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=1, window=10), clock=clock)

    assert limiter.consume("k").allowed is True
    for t in (1.0, 5.0, 9.0):
        clock.return_value = t
        assert limiter.consume("k").allowed is False

    assert list(limiter.store.get_or_create("k").timestamps) == [0.0]

    clock.return_value = 10.5
    assert limiter.consume("k").allowed is True


def test_entry_exactly_window_old_still_counts() -> None:
    clock = Mock(return_value=100.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=1, window=60), clock=clock)
    assert limiter.consume("k").allowed is True

    clock.return_value = 160.0
    at_boundary = limiter.consume("k")
    assert at_boundary.allowed is False
    assert at_boundary.retry_after_seconds == 0

    clock.return_value = 160.001
    assert limiter.consume("k").allowed is True


def test_window_recovers_after_denial() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=2, window=30), clock=clock)
    limiter.consume("k")
    limiter.consume("k")

    clock.return_value = 5.0
    assert limiter.consume("k").allowed is False

    clock.return_value = 5.0 + 30 + 0.01
    assert limiter.consume("k").allowed is True


def test_retry_after_is_sufficient_wait() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=2, window=60), clock=clock)
    clock.return_value = 0.25
    limiter.consume("k")
    clock.return_value = 12.5
    limiter.consume("k")

    clock.return_value = 20.0
    denied = limiter.consume("k")
    assert denied.allowed is False
    assert denied.retry_after_seconds == 41

    # Retrying early is still denied, retrying after the hint is admitted
    clock.return_value = 20.0 + denied.retry_after_seconds - 1
    assert limiter.consume("k").allowed is False
    clock.return_value = 20.0 + denied.retry_after_seconds
    assert limiter.consume("k").allowed is True


def test_sliding_window_admits_as_oldest_entries_expire() -> None:
    clock = Mock(return_value=0.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=2, window=10), clock=clock)
    limiter.consume("k")
    clock.return_value = 6.0
    limiter.consume("k")

    clock.return_value = 10.5
    assert limiter.consume("k").allowed is True
    assert limiter.consume("k").allowed is False
    assert list(limiter.store.get_or_create("k").timestamps) == [6.0, 10.5]


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=1), clock=clock)

    assert limiter.consume("k1").allowed is True
    assert limiter.consume("k1").allowed is False

    assert limiter.consume("k2").allowed is True


def test_evaluate_evicts_stale_entries_from_front() -> None:
    counter = RateWindowCounter(key="k", timestamps=deque([0.0, 5.0, 50.0, 60.0]))

    decision = evaluate(counter, _config(limit=10, window=60), now=65.0)

    assert decision.allowed is True
    assert list(counter.timestamps) == [5.0, 50.0, 60.0, 65.0]


def test_evaluate_on_empty_window_always_allows() -> None:
    counter = RateWindowCounter(key="k", timestamps=deque([0.0, 1.0]))

    decision = evaluate(counter, _config(limit=2, window=10), now=100.0)

    assert decision.allowed is True
    assert decision.retry_after_seconds == 0
    assert list(counter.timestamps) == [100.0]


def test_store_returns_same_counter_per_key() -> None:
    store = SlidingWindowCounterStore()

    first = store.get_or_create("a")
    assert store.get_or_create("a") is first
    assert store.get_or_create("b") is not first
    assert len(store) == 2
    assert "a" in store
    assert "c" not in store


def test_store_concurrent_first_access_creates_one_counter() -> None:
    store = SlidingWindowCounterStore()
    barrier = threading.Barrier(16)
    seen: list[RateWindowCounter] = []
    seen_lock = threading.Lock()

    def _worker() -> None:
        barrier.wait()
        counter = store.get_or_create("shared")
        with seen_lock:
            seen.append(counter)

    threads = [threading.Thread(target=_worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 1
    assert all(c is seen[0] for c in seen)


def test_concurrent_requests_from_fresh_key_respect_limit() -> None:
    limit, total = 10, 64
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=limit, window=60))
    barrier = threading.Barrier(total)
    results: list[bool] = []
    results_lock = threading.Lock()

    def _worker() -> None:
        barrier.wait()
        allowed = limiter.consume("fresh").allowed
        with results_lock:
            results.append(allowed)

    threads = [threading.Thread(target=_worker) for _ in range(total)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == limit
    assert results.count(False) == total - limit
    assert len(limiter.store.get_or_create("fresh").timestamps) == limit


@pytest.mark.parametrize(
    "kwargs",
    [
        {"request_limit": 0, "window_seconds": 60},
        {"request_limit": 1, "window_seconds": 0},
    ],
)
def test_invalid_config(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        RateLimitConfig(**kwargs)


def test_invalid_consume_args() -> None:
    limiter = InMemorySlidingWindowRateLimiter(_config(limit=1))

    with pytest.raises(ValueError):
        limiter.consume("")


def test_config_exclusion_and_window_minutes() -> None:
    config = RateLimitConfig(
        request_limit=5,
        window_seconds=120,
        excluded_path_prefixes=frozenset({"/health", "/docs"}),
    )

    assert config.window_minutes == 2
    assert config.is_excluded("/health")
    assert config.is_excluded("/health/live")
    assert config.is_excluded("/docs/oauth2-redirect")
    assert not config.is_excluded("/api/v1/users")
    assert RateLimitConfig(request_limit=1, window_seconds=90).window_minutes == 1.5
