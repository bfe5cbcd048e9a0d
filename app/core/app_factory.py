"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so tests
can build isolated instances with their own settings, clock and user store.
"""

from __future__ import annotations

from typing import Callable

from fastapi import FastAPI

from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.api.routes import health_router, users_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers, unhandled_exception_middleware
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import RateLimitMiddleware
from app.services.user_store import UserStore


def create_app(
    settings: Settings | None = None,
    *,
    clock: Callable[[], float] | None = None,
    user_store: UserStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to build from; the process-wide settings when omitted.
        clock: Time source for the rate limiter (monotonic seconds by default).
        user_store: Backing store for the users resource; seeded when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title=cfg.app.title,
        description=(
            "In-memory user profile CRUD API with structured error responses "
            "and per-client sliding-window rate limiting."
        ),
        version="0.1.0",
    )

    app.state.settings = cfg
    app.state.user_store = user_store if user_store is not None else UserStore()

    rate_limit_config = None
    if cfg.rate_limit.enabled:
        rate_limit_config = cfg.rate_limit.to_config()
        limiter_kwargs = {"clock": clock} if clock is not None else {}
        app.state.rate_limiter = InMemorySlidingWindowRateLimiter(rate_limit_config, **limiter_kwargs)
        app.middleware("http")(RateLimitMiddleware(app.state.rate_limiter))

    # Inside the request id middleware so mapped errors keep the header
    app.middleware("http")(unhandled_exception_middleware)

    # Registered last so it wraps the limiter and tags 429s too
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(users_router, prefix=cfg.app.api_prefix)
    app.include_router(health_router)

    apply_openapi_customizations(app, rate_limit_config)

    return app
