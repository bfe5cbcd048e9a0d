"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: insertion of new keys is atomic and each key's window is
  guarded by its own lock, so unrelated keys never block each other.
- Stale timestamps are pruned lazily on access. Counters for idle keys are
  never reclaimed, so memory grows with the number of distinct keys seen.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitDecision,
)


@dataclass
class RateWindowCounter:
    """Recent admission times for one client key, oldest first."""

    key: str
    timestamps: deque[float] = field(default_factory=deque)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class SlidingWindowCounterStore:
    """Owns one RateWindowCounter per client key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, RateWindowCounter] = {}

    def __len__(self) -> int:
        return len(self._counters)

    def __contains__(self, key: object) -> bool:
        return key in self._counters

    def get_or_create(self, key: str) -> RateWindowCounter:
        """Return the counter for ``key``, creating it on first access.

        Concurrent first access for the same key always yields the same
        counter instance.
        """
        counter = self._counters.get(key)
        if counter is not None:
            return counter

        with self._lock:
            return self._counters.setdefault(key, RateWindowCounter(key=key))


def evaluate(counter: RateWindowCounter, config: RateLimitConfig, now: float) -> RateLimitDecision:
    """Decide whether one more request from ``counter.key`` fits in the window.

    Caller must hold ``counter.lock``. Entries older than the window are
    evicted first; an entry exactly ``window_seconds`` old still counts.
    Denied requests are not recorded.

    Args:
        counter: Window state for the requesting key.
        config: Limiter configuration.
        now: Current time in seconds (same clock as stored timestamps).

    Returns:
        RateLimitDecision, with the wait until the oldest surviving entry
        leaves the window when denied.
    """
    timestamps = counter.timestamps
    while timestamps and now - timestamps[0] > config.window_seconds:
        timestamps.popleft()

    if len(timestamps) >= config.request_limit:
        age = now - timestamps[0]
        retry_after = max(0, math.ceil(config.window_seconds - age))
        return RateLimitDecision(allowed=False, retry_after_seconds=retry_after)

    timestamps.append(now)
    return RateLimitDecision(allowed=True)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter admitting at most ``request_limit`` requests per key
    within any sliding window of ``window_seconds``.

    Important:
        This limiter is per-process only. If the API runs with multiple
        workers, each worker enforces its own independent limits.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        *,
        store: SlidingWindowCounterStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the limiter.

        Args:
            config: Limit, window and exclusions.
            store: Counter store; a fresh one is created when omitted.
            clock: Time source returning seconds. Only differences between
                readings are used, so a monotonic clock is preferred.
        """
        self.config = config
        self.store = store if store is not None else SlidingWindowCounterStore()
        self._clock = clock

    def consume(self, key: str) -> RateLimitDecision:
        """Evaluate one request for ``key`` and record it when admitted.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        counter = self.store.get_or_create(key)
        with counter.lock:
            # Read the clock inside the lock so timestamps stay ordered
            return evaluate(counter, self.config, self._clock())
