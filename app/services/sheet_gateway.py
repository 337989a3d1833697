"""Rate-limited, cached access to spreadsheet rows.

Every document API call made by the application goes through this gateway:
reads consult the response cache first and only reach the API (through the
shared limiter) on a miss; writes always go through the limiter and
invalidate the cached reads of the sheets they touch.
"""

from __future__ import annotations

import logging
import re

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.sheets.base import AbstractDocumentStore, CellValues, PendingWrite
from app.utils.response_cache import ResponseCache

logger = logging.getLogger(__name__)

DEFAULT_READ_RANGE = "A:Z"

_NEEDS_QUOTING = re.compile(r"[^\w]")


def a1_range(sheet_name: str, cell_range: str) -> str:
    """Join a sheet title and a cell range, quoting titles with spaces or symbols."""
    if _NEEDS_QUOTING.search(sheet_name):
        sheet_name = "'" + sheet_name.replace("'", "''") + "'"
    return f"{sheet_name}!{cell_range}"


def sheet_cache_prefix(spreadsheet_id: str, sheet_name: str) -> str:
    """Key prefix shared by every cached read of one sheet."""
    return f"sheet:{spreadsheet_id}:{sheet_name}!"


def sheet_cache_key(spreadsheet_id: str, sheet_name: str, cell_range: str) -> str:
    return f"{sheet_cache_prefix(spreadsheet_id, sheet_name)}{cell_range}"


def sheet_name_of(qualified_range: str) -> str:
    """Sheet title of an A1 range such as ``'Stores'!I2:J2`` or ``Stores!I2:J2``."""
    name = qualified_range.rsplit("!", 1)[0] if "!" in qualified_range else qualified_range
    if len(name) >= 2 and name[0] == name[-1] == "'":
        name = name[1:-1].replace("''", "'")
    return name


class SheetGateway:
    """Single entry point for document API traffic.

    Attributes:
        store: Document store adapter.
        limiter: Limiter shared by every document API caller in the process.
        cache: Response cache for reads.
        default_spreadsheet_id: Used when callers pass no spreadsheet id.
    """

    def __init__(
        self,
        store: AbstractDocumentStore,
        limiter: AbstractRateLimiter,
        cache: ResponseCache,
        default_spreadsheet_id: str,
    ) -> None:
        self.store = store
        self.limiter = limiter
        self.cache = cache
        self.default_spreadsheet_id = default_spreadsheet_id

    async def read_rows(
        self,
        sheet_name: str,
        *,
        spreadsheet_id: str | None = None,
        cell_range: str = DEFAULT_READ_RANGE,
        use_cache: bool = True,
        ttl_seconds: float | None = None,
    ) -> tuple[CellValues, bool]:
        """Read a sheet range, preferring the cache.

        Args:
            sheet_name: Sheet title.
            spreadsheet_id: Spreadsheet to read; defaults to the main one.
            cell_range: A1 range without the sheet name.
            use_cache: When False the API is always called; the fresh rows
                still populate the cache.
            ttl_seconds: Optional TTL for the cached rows.

        Returns:
            Tuple of (rows, served_from_cache).
        """
        sid = spreadsheet_id or self.default_spreadsheet_id
        key = sheet_cache_key(sid, sheet_name, cell_range)

        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached, True

        qualified = a1_range(sheet_name, cell_range)
        rows = await self.limiter.execute(lambda: self.store.get_values(sid, qualified))
        self.cache.set(key, rows, ttl_seconds)
        return rows, False

    async def batch_write(
        self,
        writes: list[PendingWrite],
        *,
        spreadsheet_id: str | None = None,
    ) -> dict:
        """Send every write in one API call and invalidate the touched sheets."""
        sid = spreadsheet_id or self.default_spreadsheet_id
        if not writes:
            return {}

        result = await self.limiter.execute(lambda: self.store.batch_update(sid, writes))

        for sheet_name in sorted({sheet_name_of(write.range) for write in writes}):
            self.cache.delete_pattern(sheet_cache_prefix(sid, sheet_name))
        return result

    def invalidate(self, sheet_name: str, *, spreadsheet_id: str | None = None) -> int:
        sid = spreadsheet_id or self.default_spreadsheet_id
        return self.cache.delete_pattern(sheet_cache_prefix(sid, sheet_name))
