"""Application factory for the FastAPI app.

Builds the admission layer once per app and hands it to the HTTP layer
explicitly through ``app.state``:

- ``app.state.store``: window store owned by the app (closed on shutdown)
- ``app.state.throttle``: rate limiter, or None when disabled
- ``app.state.gate``: concurrency gate, or None when disabled

Request order: request-id middleware → concurrency gate → rate limit
dependency → route handler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from gatekeeper.adapters.rate_limit import WindowThrottle
from gatekeeper.adapters.window_store import AbstractWindowStore, create_window_store
from gatekeeper.api.routes import admission_router, health_router
from gatekeeper.core.concurrency import ConcurrencyGate, concurrency_middleware
from gatekeeper.core.config import AdmissionSettings, settings
from gatekeeper.core.exception_handlers import setup_exception_handlers
from gatekeeper.core.logging import configure_logging
from gatekeeper.core.middleware import request_id_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await app.state.store.close()
    logger.info("window_store.closed")


def create_app(
    admission: AdmissionSettings | None = None,
    *,
    store: AbstractWindowStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        admission: Admission settings; defaults to the global settings.
        store: Window store to use instead of the configured backend.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.

    Raises:
        ConfigurationError: If limits, capacity or store backend are invalid.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    cfg = admission or settings.admission

    app = FastAPI(
        title="Gatekeeper",
        description=(
            "Request admission layer: bounds concurrent requests and rate limits "
            "callers per expiring window, answering 429 with X-RateLimit-* headers."
        ),
        version="0.1.0",
        lifespan=_lifespan,
    )

    app.state.store = store if store is not None else create_window_store(cfg)
    app.state.throttle = (
        WindowThrottle(
            app.state.store,
            max_attempts=cfg.max_attempts,
            window_seconds=cfg.window_seconds,
            key_prefix=cfg.key_prefix,
        )
        if cfg.rate_limit_enabled
        else None
    )
    app.state.gate = ConcurrencyGate(cfg.concurrent_num) if cfg.concurrency_enabled else None

    # Middleware: the last one registered runs first.
    if app.state.gate is not None:
        app.middleware("http")(concurrency_middleware(app.state.gate))
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(admission_router, prefix="/v1")
    app.include_router(health_router)

    logger.info(
        "admission.configured",
        extra={
            "store_backend": type(app.state.store).__name__,
            "rate_limit_enabled": cfg.rate_limit_enabled,
            "max_attempts": cfg.max_attempts,
            "window_s": cfg.window_seconds,
            "concurrency_enabled": cfg.concurrency_enabled,
            "concurrent_num": cfg.concurrent_num,
        },
    )

    return app
