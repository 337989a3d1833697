"""Incremental geocoding synchronization of sheet coordinates.

A run reads every row of a target sheet, decides per row whether its
coordinates must be cleared, left alone or (re)geocoded, and then:
- writes all coordinate changes in exactly one batched API call
- persists the address hash map once, after that write
- optionally posts one summary notification

Hashes only advance after a successful geocode and are saved last, so a run
that dies halfway is safe to repeat from scratch: rows whose update was not
committed are detected as changed again on the next run.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from app.adapters.geocoding.base import AbstractGeocodingClient, Coordinates
from app.adapters.hash_store.base import AbstractHashStore, AddressHashes
from app.adapters.notify.base import AbstractNotifier, NotificationField
from app.adapters.sheets.base import PendingWrite
from app.core.errors import AppError, SyncInProgressAppError, SyncWriteAppError
from app.schemas.sync import SyncSummary
from app.services.sheet_gateway import SheetGateway, a1_range
from app.services.sync_targets import SyncTarget
from app.utils.address_normalizer import address_hash

logger = logging.getLogger(__name__)

CLEARED_VALUES = [["", ""]]


class RowOutcome(str, enum.Enum):
    CLEARED = "cleared"
    SKIPPED = "skipped"
    GEOCODED = "geocoded"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class RowProcessingResult:
    """What happened to one row during one run (not persisted)."""

    row_number: int
    entity_id: str
    outcome: RowOutcome
    coordinates: Coordinates | None = None
    error: str | None = None


def _cell(row: list[Any], index: int | None) -> str:
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value).strip()


class GeocodingSyncPipeline:
    """Keep one target's latitude/longitude columns consistent with its addresses.

    Attributes:
        target: Sheet layout being synchronized.
        gateway: Rate-limited document API access (reads bypass the cache).
        geocoder: Address geocoder, itself routed through a rate limiter.
        hash_store: Durable entity_id -> address hash map.
        notifier: Optional sink for the end-of-run summary.
        pacing_seconds: Fixed delay between consecutive geocode calls.
    """

    def __init__(
        self,
        target: SyncTarget,
        gateway: SheetGateway,
        geocoder: AbstractGeocodingClient,
        hash_store: AbstractHashStore,
        notifier: AbstractNotifier | None = None,
        *,
        pacing_seconds: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.target = target
        self.gateway = gateway
        self.geocoder = geocoder
        self.hash_store = hash_store
        self.notifier = notifier
        self.pacing_seconds = pacing_seconds
        self._sleep = sleep
        self._run_lock = asyncio.Lock()
        self._geocode_calls = 0

    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    def entity_id(self, row: list[Any], row_number: int) -> str:
        parts = [_cell(row, column) for column in self.target.key_columns]
        if not any(parts):
            return f"{self.target.key_prefix}row{row_number}"
        return self.target.key_prefix + "_".join(parts)

    def _is_inactive(self, row: list[Any]) -> bool:
        if self.target.status_column is None:
            return False
        return _cell(row, self.target.status_column) not in self.target.active_values

    def _usable_address(self, row: list[Any]) -> str:
        address = _cell(row, self.target.address_column)
        if address in self.target.placeholder_addresses:
            return ""
        return address

    def _coordinate_write(self, row_number: int, values: list[list[Any]]) -> PendingWrite:
        return PendingWrite(
            range=a1_range(self.target.sheet_name, self.target.coordinate_range(row_number)),
            values=values,
        )

    async def _geocode(self, address: str) -> Coordinates | None:
        # The geocoding quota is separate from the document API's
        if self._geocode_calls and self.pacing_seconds > 0:
            await self._sleep(self.pacing_seconds)
        self._geocode_calls += 1
        return await self.geocoder.geocode(address)

    async def process_row(
        self,
        row: list[Any],
        row_number: int,
        hashes: AddressHashes,
        writes: list[PendingWrite],
    ) -> RowProcessingResult:
        """Run one row through the sync state machine.

        Args:
            row: Cell values of the row.
            row_number: 1-based sheet row number.
            hashes: In-memory hash map, updated on successful geocodes.
            writes: Pending writes of the run, appended to on changes.

        Returns:
            RowProcessingResult for the row.
        """
        entity_id = self.entity_id(row, row_number)
        latitude = _cell(row, self.target.latitude_column)
        longitude = _cell(row, self.target.longitude_column)
        has_any_coordinate = bool(latitude or longitude)
        address = self._usable_address(row)

        if self._is_inactive(row) or not address:
            if has_any_coordinate:
                writes.append(self._coordinate_write(row_number, CLEARED_VALUES))
                return RowProcessingResult(row_number, entity_id, RowOutcome.CLEARED)
            return RowProcessingResult(row_number, entity_id, RowOutcome.SKIPPED)

        current_hash = address_hash(address)
        if hashes.get(entity_id) == current_hash and latitude and longitude:
            return RowProcessingResult(row_number, entity_id, RowOutcome.SKIPPED)

        try:
            coordinates = await self._geocode(address)
        except AppError as exc:
            logger.warning(
                "sync.row_failed",
                extra={
                    "target": self.target.name,
                    "row": row_number,
                    "entity_id": entity_id,
                    "error_code": exc.code,
                    "error_message": exc.message,
                },
            )
            return RowProcessingResult(
                row_number, entity_id, RowOutcome.FAILED, error=exc.message
            )

        if coordinates is None:
            logger.info(
                "sync.row_not_found",
                extra={"target": self.target.name, "row": row_number, "address": address},
            )
            return RowProcessingResult(row_number, entity_id, RowOutcome.NOT_FOUND)

        writes.append(
            self._coordinate_write(
                row_number, [[coordinates.latitude, coordinates.longitude]]
            )
        )
        hashes[entity_id] = current_hash
        logger.info(
            "sync.row_geocoded",
            extra={
                "target": self.target.name,
                "row": row_number,
                "entity_id": entity_id,
                "latitude": coordinates.latitude,
                "longitude": coordinates.longitude,
            },
        )
        return RowProcessingResult(
            row_number, entity_id, RowOutcome.GEOCODED, coordinates=coordinates
        )

    async def run(self) -> SyncSummary:
        """Execute one sync run.

        Raises:
            SyncInProgressAppError: If a run of this target is already going.
            SyncWriteAppError: If the batched coordinate write fails.
            AppError: If reading the sheet fails.
        """
        if self._run_lock.locked():
            raise SyncInProgressAppError(
                code="sync_in_progress",
                message=f"A coordinate sync for '{self.target.name}' is already running",
                details={"target": self.target.name},
            )
        async with self._run_lock:
            return await self._run()

    async def _run(self) -> SyncSummary:
        started = time.perf_counter()
        target = self.target
        self._geocode_calls = 0

        logger.info("sync.started", extra={"target": target.name, "sheet": target.sheet_name})

        rows, _ = await self.gateway.read_rows(
            target.sheet_name,
            spreadsheet_id=target.spreadsheet_id,
            cell_range=target.read_range,
            use_cache=False,
        )
        data_rows = rows[target.header_rows:]

        stored_hashes = await self.hash_store.load()
        hashes = dict(stored_hashes)
        writes: list[PendingWrite] = []
        results: list[RowProcessingResult] = []
        candidates = 0

        for offset, row in enumerate(data_rows):
            if not self._is_inactive(row) and self._usable_address(row):
                candidates += 1
            row_number = target.header_rows + offset + 1
            results.append(await self.process_row(row, row_number, hashes, writes))

        if writes:
            try:
                await self.gateway.batch_write(writes, spreadsheet_id=target.spreadsheet_id)
            except AppError as exc:
                logger.error(
                    "sync.batch_write_failed",
                    extra={
                        "target": target.name,
                        "pending_writes": len(writes),
                        "error_code": exc.code,
                    },
                )
                raise SyncWriteAppError(
                    code="sync_write_failed",
                    message=f"Batched coordinate write failed: {exc.message}",
                    details={"target": target.name, "pending_writes": len(writes)},
                ) from exc

        hashes_persisted = False
        if hashes != stored_hashes:
            try:
                await self.hash_store.save(hashes, prefix=target.key_prefix)
                hashes_persisted = True
            except (OSError, AppError) as exc:
                # Next run re-geocodes the affected rows
                logger.error(
                    "sync.hash_persist_failed",
                    extra={"target": target.name, "error_type": type(exc).__name__},
                )

        counts = {outcome: 0 for outcome in RowOutcome}
        for result in results:
            counts[result.outcome] += 1
        updated = counts[RowOutcome.GEOCODED] + counts[RowOutcome.CLEARED]

        summary = SyncSummary(
            target=target.name,
            total_rows=len(data_rows),
            candidates=candidates,
            geocoded=counts[RowOutcome.GEOCODED],
            cleared=counts[RowOutcome.CLEARED],
            skipped=counts[RowOutcome.SKIPPED],
            not_found=counts[RowOutcome.NOT_FOUND],
            failed=counts[RowOutcome.FAILED],
            updated=updated,
            written_ranges=len(writes),
            hashes_persisted=hashes_persisted,
            message=f"Processed {candidates} addresses, updated {updated} coordinates",
        )

        if updated and self.notifier is not None:
            summary.notified = await self._notify(summary)

        summary.duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info("sync.completed", extra=summary.model_dump(exclude={"message"}))
        return summary

    async def _notify(self, summary: SyncSummary) -> bool:
        fields = [
            NotificationField("대상", summary.target),
            NotificationField("처리", str(summary.candidates)),
            NotificationField("좌표 갱신", str(summary.geocoded)),
            NotificationField("좌표 삭제", str(summary.cleared)),
            NotificationField("실패", str(summary.failed)),
        ]
        try:
            await self.notifier.notify("좌표 동기화 완료", fields)
        except AppError as exc:
            logger.warning(
                "sync.notify_failed",
                extra={"target": summary.target, "error_code": exc.code},
            )
            return False
        return True
