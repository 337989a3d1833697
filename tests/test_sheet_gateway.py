"""Tests for the cached, rate-limited sheet gateway."""

import pytest

from app.adapters.rate_limit.cooldown import CooldownRateLimiter
from app.adapters.sheets.base import PendingWrite
from app.core.errors import QuotaExceededAppError
from app.services.sheet_gateway import (
    SheetGateway,
    a1_range,
    sheet_cache_key,
    sheet_cache_prefix,
    sheet_name_of,
)
from app.utils.response_cache import ResponseCache

SID = "spreadsheet-1"


@pytest.fixture
def gateway(document_store, fake_clock) -> SheetGateway:
    limiter = CooldownRateLimiter(
        name="sheets",
        cooldown_seconds=0.5,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    return SheetGateway(
        store=document_store,
        limiter=limiter,
        cache=ResponseCache(default_ttl_seconds=300, max_size=200),
        default_spreadsheet_id=SID,
    )


@pytest.mark.parametrize(
    "sheet, cell_range, expected",
    [
        ("Stores", "A:Z", "Stores!A:Z"),
        ("판매점정보", "H2:H", "판매점정보!H2:H"),
        ("My Sheet", "A1:B2", "'My Sheet'!A1:B2"),
        ("O'Brien", "A:A", "'O''Brien'!A:A"),
    ],
)
def test_a1_range_quotes_when_needed(sheet: str, cell_range: str, expected: str) -> None:
    assert a1_range(sheet, cell_range) == expected
    assert sheet_name_of(expected) == sheet


def test_cache_keys_share_the_sheet_prefix() -> None:
    key = sheet_cache_key(SID, "Stores", "A:Z")

    assert key.startswith(sheet_cache_prefix(SID, "Stores"))
    assert not key.startswith(sheet_cache_prefix(SID, "Stores2"))


@pytest.mark.asyncio
async def test_second_read_is_served_from_cache(gateway, document_store) -> None:
    document_store.sheets["Stores!A:Z"] = [["id", "name"], ["1", "강남점"]]

    rows, cached = await gateway.read_rows("Stores")
    again, cached_again = await gateway.read_rows("Stores")

    assert rows == again == [["id", "name"], ["1", "강남점"]]
    assert (cached, cached_again) == (False, True)
    assert document_store.reads == [(SID, "Stores!A:Z")]


@pytest.mark.asyncio
async def test_read_without_cache_always_calls_api(gateway, document_store) -> None:
    document_store.sheets["Stores!A:Z"] = [["id"]]

    await gateway.read_rows("Stores")
    _, cached = await gateway.read_rows("Stores", use_cache=False)

    assert cached is False
    assert len(document_store.reads) == 2


@pytest.mark.asyncio
async def test_reads_go_through_the_shared_limiter(gateway, document_store, fake_clock) -> None:
    await gateway.read_rows("Stores", use_cache=False)
    await gateway.read_rows("Stores", use_cache=False)

    assert fake_clock.sleeps == [0.5]


@pytest.mark.asyncio
async def test_batch_write_is_one_call_and_invalidates_touched_sheets(gateway, document_store) -> None:
    document_store.sheets["Stores!A:Z"] = [["id"]]
    document_store.sheets["Sales!A:Z"] = [["id"]]
    await gateway.read_rows("Stores")
    await gateway.read_rows("Sales")

    writes = [
        PendingWrite(range="Stores!I2:J2", values=[[37.5, 127.0]]),
        PendingWrite(range="Stores!I5:J5", values=[["", ""]]),
    ]
    await gateway.batch_write(writes)

    assert document_store.batches == [(SID, writes)]
    assert gateway.cache.get(sheet_cache_key(SID, "Stores", "A:Z")) is None
    assert gateway.cache.get(sheet_cache_key(SID, "Sales", "A:Z")) == [["id"]]


@pytest.mark.asyncio
async def test_empty_batch_makes_no_call(gateway, document_store) -> None:
    assert await gateway.batch_write([]) == {}
    assert document_store.batches == []


@pytest.mark.asyncio
async def test_failed_read_is_not_cached(gateway, document_store) -> None:
    document_store.read_error = ValueError("Unable to parse range")

    with pytest.raises(ValueError):
        await gateway.read_rows("Stores")

    assert len(gateway.cache) == 0


@pytest.mark.asyncio
async def test_quota_errors_are_retried_by_the_limiter(gateway, document_store, fake_clock) -> None:
    document_store.sheets["Stores!A:Z"] = [["id"]]
    original = document_store.get_values
    failures = iter([QuotaExceededAppError(code="q", message="quota")])

    async def flaky(spreadsheet_id: str, cell_range: str):
        error = next(failures, None)
        if error is not None:
            raise error
        return await original(spreadsheet_id, cell_range)

    document_store.get_values = flaky

    rows, _ = await gateway.read_rows("Stores")

    assert rows == [["id"]]
    assert len(fake_clock.sleeps) == 1
    assert 3.0 <= fake_clock.sleeps[0] <= 5.0


def test_invalidate_removes_only_that_sheet(gateway) -> None:
    gateway.cache.set(sheet_cache_key(SID, "Stores", "A:Z"), [[1]])
    gateway.cache.set(sheet_cache_key(SID, "Stores", "A1:B2"), [[2]])
    gateway.cache.set(sheet_cache_key(SID, "Sales", "A:Z"), [[3]])

    assert gateway.invalidate("Stores") == 2
    assert len(gateway.cache) == 1
