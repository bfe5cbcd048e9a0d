"""OpenAPI customization utilities.

Enriches the generated schema with:
- Tags metadata
- The 429 ``ApiError`` response (with ``Retry-After`` header) on every
  operation the rate limiter applies to

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

from app.adapters.rate_limit.base import RateLimitConfig
from app.schemas.error import ApiError

_TAGS = [
    {
        "name": "Users",
        "description": "Create, read, update and delete user profiles.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]

_HTTP_METHODS = {"get", "put", "post", "delete", "patch", "head", "options"}


def _rate_limited_response() -> Dict[str, Any]:
    return {
        "description": "Rate limit exceeded",
        "headers": {
            "Retry-After": {
                "description": "Seconds to wait before retrying.",
                "schema": {"type": "integer"},
            }
        },
        "content": {
            "application/json": {"schema": {"$ref": "#/components/schemas/ApiError"}}
        },
    }


def apply_openapi_customizations(app: FastAPI, rate_limit: RateLimitConfig | None = None) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 responses.

    Args:
        app: Application whose ``openapi`` method is wrapped.
        rate_limit: Active limiter config; when None no 429 responses are
            documented.
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        if rate_limit is not None:
            # ApiError may be missing when no route references it directly
            schemas = schema.setdefault("components", {}).setdefault("schemas", {})
            schemas.setdefault(
                "ApiError",
                ApiError.model_json_schema(by_alias=True, ref_template="#/components/schemas/{model}"),
            )
            for path, methods in schema.get("paths", {}).items():
                if rate_limit.is_excluded(path):
                    continue
                for method, operation in methods.items():
                    if method in _HTTP_METHODS and isinstance(operation, dict):
                        operation.setdefault("responses", {}).setdefault("429", _rate_limited_response())

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
