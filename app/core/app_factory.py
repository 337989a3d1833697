from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances with their own services.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from app.api.routes import cache_router, health_router, sheets_router, sync_router
from app.core.config import Settings, settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.services import ServiceContainer, build_services
from app.services.cache_maintenance import run_cache_maintenance

ServicesFactory = Callable[[Settings], ServiceContainer]


def create_app(
    cfg: Settings | None = None,
    services_factory: ServicesFactory = build_services,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        cfg: Settings to build services from; defaults to the global settings.
        services_factory: Builds the service container at startup.

    Returns:
        Configured FastAPI app with lifespan, middleware, handlers and routers.
    """
    cfg = cfg or settings
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = services_factory(cfg)
        app.state.services = services

        maintenance: asyncio.Task | None = None
        if cfg.cache.cleanup_interval_seconds > 0:
            maintenance = asyncio.create_task(
                run_cache_maintenance(
                    services.cache,
                    cfg.cache.cleanup_interval_seconds,
                    cfg.cache.warning_ratio,
                )
            )
        try:
            yield
        finally:
            if maintenance is not None:
                maintenance.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await maintenance
            await services.aclose()

    app = FastAPI(
        title="Sheet Sync API",
        description=(
            "Rate-limited, cached access to the store and sales point sheets, "
            "plus incremental geocoding of their address columns: only rows "
            "whose address changed since the last run are sent to the geocoder, "
            "and all coordinate updates are written in a single batched call."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(cache_router, prefix="/v1")
    app.include_router(sheets_router, prefix="/v1")
    app.include_router(sync_router, prefix="/v1")

    return app
