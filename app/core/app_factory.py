from __future__ import annotations

"""Application factory for the FastAPI app.

Builds one rate limiter, one response cache and their cleanup sweepers per
application instance and keeps them on ``app.state``. Sweepers start with the
application lifespan and stop at shutdown; nothing runs at import time.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.api.routes import admission_router, health_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.sweeper import PeriodicSweeper
from app.utils.clock import Clock, epoch_ms
from app.utils.ttl_cache import TTLCache


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    app_settings: Settings = app.state.settings
    sweepers: list[PeriodicSweeper] = app.state.sweepers

    if app_settings.app.sweepers_enabled:
        for sweeper in sweepers:
            sweeper.start()
    try:
        yield
    finally:
        for sweeper in sweepers:
            sweeper.stop()


def create_app(app_settings: Settings | None = None, *, clock: Clock = epoch_ms) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to build the app with; defaults to the
            environment-derived global settings.
        clock: Epoch-millisecond time source for the limiter and cache.

    Returns:
        Configured FastAPI app with admission components, middleware,
        handlers and routers.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title="Library API",
        description=(
            "Request-admission layer of the library management API: per-client "
            "fixed-window rate limiting and a TTL response cache."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )

    rate_limiter = InMemoryFixedWindowRateLimiter(
        window_ms=cfg.app.rate_limit_window_ms,
        max_requests=cfg.app.rate_limit_max_requests,
        clock=clock,
    )
    response_cache = TTLCache(
        default_ttl_seconds=cfg.app.cache_default_ttl_seconds,
        clock=clock,
    )

    app.state.settings = cfg
    app.state.clock = clock
    app.state.rate_limiter = rate_limiter
    app.state.response_cache = response_cache
    app.state.sweepers = [
        PeriodicSweeper(
            "response_cache",
            response_cache.cleanup,
            interval_seconds=cfg.app.cache_sweep_interval_seconds,
        ),
        PeriodicSweeper(
            "rate_limiter",
            rate_limiter.cleanup,
            interval_seconds=cfg.app.rate_limit_sweep_interval_seconds,
        ),
    ]

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(admission_router, prefix="/v1")
    app.include_router(health_router)

    return app
