from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.errors import ValidationAppError
from app.core.services import get_cache
from app.schemas.cache import CacheInvalidationResponse, CacheStatusResponse
from app.services.cache_maintenance import sweep_cache
from app.utils.response_cache import ResponseCache

router = APIRouter(prefix="/cache", tags=["Cache"])


@router.get("/status", response_model=CacheStatusResponse)
def cache_status(cache: ResponseCache = Depends(get_cache)) -> CacheStatusResponse:
    """Entry counts of the response cache, split into valid and expired."""
    return CacheStatusResponse(
        **cache.status(),
        max_size=cache.max_size,
        default_ttl_seconds=cache.default_ttl_seconds,
    )


@router.post("/cleanup", response_model=CacheInvalidationResponse)
def cache_cleanup(cache: ResponseCache = Depends(get_cache)) -> CacheInvalidationResponse:
    return CacheInvalidationResponse(removed=sweep_cache(cache))


@router.delete("/entries/{key:path}", response_model=CacheInvalidationResponse)
def delete_cache_entry(
    key: str,
    cache: ResponseCache = Depends(get_cache),
) -> CacheInvalidationResponse:
    return CacheInvalidationResponse(removed=int(cache.delete(key)))


@router.delete("/entries", response_model=CacheInvalidationResponse)
def delete_cache_entries(
    prefix: str = Query(..., description="Key prefix, e.g. 'sheet:<spreadsheet_id>:'"),
    cache: ResponseCache = Depends(get_cache),
) -> CacheInvalidationResponse:
    """Remove every entry whose key starts with ``prefix``."""
    if not prefix:
        raise ValidationAppError(
            code="empty_prefix",
            message="prefix must not be empty; use a non-empty key prefix",
        )
    return CacheInvalidationResponse(removed=cache.delete_pattern(prefix))
