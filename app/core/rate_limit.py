"""Rate limiting middleware.

Wires the sliding-window limiter adapter into the HTTP layer. Every request
whose path is not excluded is keyed by client address and either forwarded
untouched or answered with a structured 429.

Client identity:
- First entry of ``X-Forwarded-For`` when present (requests behind a proxy).
- Otherwise the transport peer address.
- Otherwise ``"unknown"``; such requests share one bucket.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from app.schemas.error import ApiError, RateLimitDetails

logger = logging.getLogger(__name__)

FORWARDED_FOR_HEADER = "X-Forwarded-For"
UNKNOWN_CLIENT = "unknown"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


def extract_client_key(request: Request) -> str:
    """Derive the rate limit key for a request. Never raises."""

    forwarded_for = request.headers.get(FORWARDED_FOR_HEADER, "")
    if forwarded_for.strip():
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def _hash_client_key(key: str) -> str:
    """Hash the client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class RateLimitMiddleware:
    """HTTP middleware applying a rate limiter to non-excluded paths.

    Usage:
        app.middleware("http")(RateLimitMiddleware(limiter))
    """

    def __init__(self, limiter: AbstractRateLimiter) -> None:
        self.limiter = limiter
        self.config = limiter.config

    async def __call__(self, request: Request, call_next) -> Response:
        path = request.url.path
        if self.config.is_excluded(path):
            return await call_next(request)

        key = extract_client_key(request)
        decision = self.limiter.consume(key)
        if decision.allowed:
            return await call_next(request)

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "key_hash": _hash_client_key(key),
                "path": path,
                "limit": self.config.request_limit,
                "window_s": self.config.window_seconds,
                "retry_after_s": decision.retry_after_seconds,
            },
        )
        return self.build_rejection(path, decision)

    def build_rejection(self, path: str, decision: RateLimitDecision) -> JSONResponse:
        """Build the 429 response for a denied request."""

        limit = self.config.request_limit
        window_minutes = self.config.window_minutes
        error = ApiError(
            error_code=RATE_LIMIT_EXCEEDED,
            message=f"Rate limit exceeded. Maximum {limit} requests per {window_minutes} minute(s)",
            path=path,
            details=RateLimitDetails(
                limit=limit,
                window_minutes=window_minutes,
                retry_after_seconds=decision.retry_after_seconds,
            ).model_dump(by_alias=True),
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error.to_content(),
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )
