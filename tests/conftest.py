"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any app import so the global settings
never pick up a developer's .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import AppSettings, LogSettings, RateLimitSettings, Settings


class FakeClock:
    """Deterministic monotonic clock for rate limiter tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with rate limit overrides, e.g. ``make_settings(request_limit=3)``."""

    def _make(**rate_limit: object) -> Settings:
        return Settings(
            app=AppSettings(),
            rate_limit=RateLimitSettings(**rate_limit),
            log=LogSettings(level="WARNING"),
        )

    return _make


@pytest.fixture
def app(make_settings: Callable[..., Settings], fake_clock: FakeClock) -> FastAPI:
    """Fresh app (own user store and limiter) with a generous limit."""
    return create_app(make_settings(request_limit=1000), clock=fake_clock)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)
