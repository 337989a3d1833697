"""Periodic response cache sweep.

Expired entries are already dropped lazily on read; the sweep keeps entries
nobody reads again from holding capacity, and warns when the cache runs
close to full so the TTL or size can be tuned.
"""

from __future__ import annotations

import asyncio
import logging

from app.utils.response_cache import ResponseCache

logger = logging.getLogger(__name__)


def sweep_cache(cache: ResponseCache, warning_ratio: float = 0.9) -> int:
    """Remove expired entries and log the resulting usage.

    Returns:
        Number of entries removed.
    """
    removed = cache.cleanup()
    status = cache.status()
    usage = status["total"] / cache.max_size

    extra = {
        "removed": removed,
        "total": status["total"],
        "max_size": cache.max_size,
        "usage_ratio": round(usage, 3),
    }
    if usage >= warning_ratio:
        logger.warning("cache.near_capacity", extra=extra)
    elif removed:
        logger.info("cache.swept", extra=extra)
    return removed


async def run_cache_maintenance(
    cache: ResponseCache,
    interval_seconds: float,
    warning_ratio: float = 0.9,
) -> None:
    """Sweep the cache every ``interval_seconds`` until cancelled."""
    logger.info("cache.maintenance_started", extra={"interval_s": interval_seconds})
    while True:
        await asyncio.sleep(interval_seconds)
        sweep_cache(cache, warning_ratio)
