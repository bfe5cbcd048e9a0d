"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start
with an in-memory sliding-window limiter and later move to a shared store
without changing the middleware.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitDecision,
)
from app.adapters.rate_limit.in_memory import (
    InMemorySlidingWindowRateLimiter,
    RateWindowCounter,
    SlidingWindowCounterStore,
    evaluate,
)

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitDecision",
    "RateWindowCounter",
    "SlidingWindowCounterStore",
    "evaluate",
]
