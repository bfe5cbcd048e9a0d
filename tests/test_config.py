"""Tests for settings loading and the derived rate limit config."""

import pytest
from pydantic import ValidationError

from app.core.config import RateLimitSettings


def test_defaults() -> None:
    cfg = RateLimitSettings()

    assert cfg.enabled is True
    assert cfg.request_limit == 100
    assert cfg.time_window_minutes == 1
    assert cfg.excluded_paths == ["/health"]


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_REQUEST_LIMIT", "25")
    monkeypatch.setenv("RATE_LIMIT_TIME_WINDOW_MINUTES", "5")
    monkeypatch.setenv("RATE_LIMIT_EXCLUDED_PATHS", '["/health", "/docs"]')

    cfg = RateLimitSettings()

    assert cfg.request_limit == 25
    assert cfg.time_window_minutes == 5
    assert cfg.excluded_paths == ["/health", "/docs"]


def test_to_config_converts_minutes_to_seconds() -> None:
    config = RateLimitSettings(request_limit=3, time_window_minutes=2, excluded_paths=["/a", "/b"]).to_config()

    assert config.request_limit == 3
    assert config.window_seconds == 120
    assert config.window_minutes == 2
    assert config.excluded_path_prefixes == frozenset({"/a", "/b"})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"request_limit": 0},
        {"time_window_minutes": 0},
    ],
)
def test_rejects_non_positive_values(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        RateLimitSettings(**kwargs)
