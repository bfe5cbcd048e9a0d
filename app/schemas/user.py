"""Pydantic schemas for the user profile resource."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserProfile(BaseModel):
    """User profile as stored and returned by the API (camelCase JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(
        ...,
        pattern=r"^[a-zA-Z0-9]{1,50}$",
        description="User identifier: alphanumeric, 1-50 characters.",
    )
    full_name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        pattern=r"^[a-zA-Z\s\-'.]+$",
        description="Letters, spaces, hyphens, apostrophes and periods only.",
    )
    email: str = Field(
        ...,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Contact email address.",
    )
    emoji: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description=(
            "Avatar emoji, 1-10 characters. Length counts Unicode code points, "
            "so a ZWJ sequence such as a family emoji counts each joined part."
        ),
    )
