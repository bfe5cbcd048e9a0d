"""Pydantic schema for the error body shared by every failing response."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiError(BaseModel):
    """Structured error response.

    Serialized with camelCase field names:
    ``{"errorCode", "message", "path", "timestamp", "details"}``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error_code: str = Field(..., description="Machine-readable error code.")
    message: str = Field(..., description="Human-readable error message.")
    path: str = Field(..., description="Request path that produced the error.")
    timestamp: datetime = Field(
        default_factory=_utc_now,
        description="When the error occurred (ISO-8601, UTC).",
    )
    details: Any = Field(
        default=None,
        description="Optional structured context (validation errors, limits, ...).",
    )

    def to_content(self) -> dict[str, Any]:
        """Return the JSON-ready body, dropping ``details`` when empty."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RateLimitDetails(BaseModel):
    """``details`` payload of a RATE_LIMIT_EXCEEDED error."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    limit: int
    window_minutes: int | float
    retry_after_seconds: int
