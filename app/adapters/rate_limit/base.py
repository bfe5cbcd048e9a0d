"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the in-process store can be swapped without touching the middleware.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RateLimitConfig:
    """Process-wide limiter configuration, read-only after startup.

    Attributes:
        request_limit: Max requests admitted per key within one window.
        window_seconds: Sliding window length in seconds.
        excluded_path_prefixes: Request paths starting with any of these
            bypass rate limiting entirely.
    """

    request_limit: int
    window_seconds: float
    excluded_path_prefixes: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.request_limit < 1:
            raise ValueError("request_limit must be >= 1")
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

    @property
    def window_minutes(self) -> int | float:
        minutes = self.window_seconds / 60
        return int(minutes) if minutes.is_integer() else minutes

    def is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.excluded_path_prefixes)


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of one rate limit evaluation.

    Attributes:
        allowed: Whether the request may proceed.
        retry_after_seconds: Seconds until admission becomes possible again
            (0 when allowed).
    """

    allowed: bool
    retry_after_seconds: int = 0


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    config: RateLimitConfig

    @abstractmethod
    def consume(self, key: str) -> RateLimitDecision:
        """Evaluate and record one request for ``key``.

        Args:
            key: Client identity (e.g., forwarded or peer IP address).

        Returns:
            RateLimitDecision describing whether it was allowed.
        """
        raise NotImplementedError
