"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.adapters.rate_limit.base import RateLimitConfig


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Production may inject everything via env vars only
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Include tracebacks in 500 error details",
    )
    title: str = Field(
        "Users API",
        description="Title shown in the OpenAPI document",
    )
    api_prefix: str = Field(
        "/api/v1",
        description="Path prefix for versioned resource routes",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-client sliding-window rate limiting.

    ``excluded_paths`` is read from the environment as a JSON list, e.g.
    ``RATE_LIMIT_EXCLUDED_PATHS='["/health", "/docs"]'``.
    """

    enabled: bool = Field(
        True,
        description="Enable the rate limiting middleware",
    )
    request_limit: int = Field(
        100,
        description="Maximum requests admitted per client within one window",
        ge=1,
    )
    time_window_minutes: int = Field(
        1,
        description="Sliding window length in minutes",
        ge=1,
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Path prefixes that bypass rate limiting entirely",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def to_config(self) -> RateLimitConfig:
        """Freeze these settings into the config shared by all evaluations."""
        return RateLimitConfig(
            request_limit=self.request_limit,
            window_seconds=self.time_window_minutes * 60,
            excluded_path_prefixes=frozenset(self.excluded_paths),
        )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (default logs/app.log)",
    )
    max_bytes: int = Field(
        10_000_000,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_app_settings() -> AppSettings:
    return AppSettings()


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()


def _build_log_settings() -> LogSettings:
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Nested settings are created via default_factory so env loading works.
settings = Settings()


def get_app_settings(request) -> Settings:
    """Return the settings the serving app was built with.

    Falls back to the process-wide ``settings`` for apps that were not
    created by the app factory.
    """
    app_settings = getattr(request.app.state, "settings", None)
    return app_settings if isinstance(app_settings, Settings) else settings
