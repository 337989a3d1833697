"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the TESTING environment variable so no .env file is loaded, and
clears credentials so the app starts with every external service disabled.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"

for _name in (
    "SHEETS_CREDENTIALS_FILE",
    "SHEETS_SPREADSHEET_ID",
    "SHEETS_SALES_SPREADSHEET_ID",
    "GEOCODING_API_KEY",
    "NOTIFY_ENABLED",
    "NOTIFY_DISCORD_WEBHOOK_URL",
):
    os.environ.pop(_name, None)

from typing import Any

import pytest

from app.adapters.geocoding.base import AbstractGeocodingClient, Coordinates
from app.adapters.notify.base import AbstractNotifier, NotificationField
from app.adapters.sheets.base import AbstractDocumentStore, CellValues, PendingWrite


class FakeClock:
    """Deterministic monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeDocumentStore(AbstractDocumentStore):
    """In-memory sheets keyed by A1 range, recording every call."""

    def __init__(self, sheets: dict[str, CellValues] | None = None) -> None:
        self.sheets: dict[str, CellValues] = dict(sheets or {})
        self.reads: list[tuple[str, str]] = []
        self.batches: list[tuple[str, list[PendingWrite]]] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None

    async def get_values(self, spreadsheet_id: str, cell_range: str) -> CellValues:
        self.reads.append((spreadsheet_id, cell_range))
        if self.read_error is not None:
            raise self.read_error
        return [list(row) for row in self.sheets.get(cell_range, [])]

    async def batch_update(self, spreadsheet_id: str, writes: list[PendingWrite]) -> dict[str, Any]:
        self.batches.append((spreadsheet_id, list(writes)))
        if self.write_error is not None:
            raise self.write_error
        return {"totalUpdatedRanges": len(writes)}


class FakeGeocoder(AbstractGeocodingClient):
    """Geocoder answering from a lookup table.

    Addresses mapped to an exception instance raise it; unknown addresses
    resolve to None.
    """

    def __init__(self, results: dict[str, Coordinates | Exception] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: list[str] = []
        self.closed = False

    async def geocode(self, address: str) -> Coordinates | None:
        self.calls.append(address)
        result = self.results.get(address)
        if isinstance(result, Exception):
            raise result
        return result

    async def aclose(self) -> None:
        self.closed = True


class RecordingNotifier(AbstractNotifier):
    def __init__(self, error: Exception | None = None) -> None:
        self.sent: list[tuple[str, list[NotificationField]]] = []
        self.error = error

    async def notify(self, title: str, fields: list[NotificationField]) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((title, fields))


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def document_store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
