from __future__ import annotations

from app.api.routes.cache import router as cache_router
from app.api.routes.health import router as health_router
from app.api.routes.sheets import router as sheets_router
from app.api.routes.sync import router as sync_router

__all__ = ["cache_router", "health_router", "sheets_router", "sync_router"]
