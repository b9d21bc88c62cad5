"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
binds the store handles for the lifetime of the app:

- ``app.state.kv``: KV namespace or None
- ``app.state.engine``: async SQLAlchemy engine or None
- ``app.state.rate_limiter``: limiter over whichever store was selected
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.kv.factory import create_kv_namespace
from app.adapters.rate_limit.factory import build_window_store
from app.api.routes import admin_router, contact_router, health_router
from app.core.config import StoreSettings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware, security_headers_middleware
from app.core.openapi import apply_openapi_customizations
from app.db.session import create_engine_from_url, init_db
from app.services.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _bind_stores(app: FastAPI, store_settings: StoreSettings) -> None:
    kv = create_kv_namespace(store_settings.kv_url)
    engine = create_engine_from_url(store_settings.database_url) if store_settings.database_url else None

    app.state.kv = kv
    app.state.engine = engine
    app.state.rate_limiter = RateLimiter(
        build_window_store(
            kv=kv,
            engine=engine,
            sweep_probability=settings.rate_limit.sweep_probability,
        )
    )


def _build_lifespan():
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.engine is not None:
            await init_db(app.state.engine)
        logger.info(
            "app.started",
            extra={
                "kv": app.state.kv.kind if app.state.kv is not None else None,
                "database": app.state.engine is not None,
            },
        )
        try:
            yield
        finally:
            if app.state.kv is not None:
                await app.state.kv.close()
            if app.state.engine is not None:
                await app.state.engine.dispose()

    return lifespan


def create_app(store_settings: StoreSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        store_settings: Store bindings; defaults to ``settings.store``.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    stores = store_settings or settings.store

    app = FastAPI(
        title="TalkTech Site API",
        description=(
            "Backend for the TalkTech marketing site: a rate-limited contact form "
            "endpoint and an admin API for reviewing submissions."
        ),
        version="0.1.0",
        lifespan=_build_lifespan(),
    )
    _bind_stores(app, stores)

    # Middleware (last registered runs first)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(contact_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
    app.include_router(admin_router)

    apply_openapi_customizations(app)

    return app
