"""Tests for the Google Sheets adapter's request wrapping and error translation."""

import json
import threading

import httplib2
import pytest
from googleapiclient.errors import HttpError

from app.adapters.rate_limit.cooldown import CooldownRateLimiter
from app.adapters.rate_limit.policy import RetryPolicy
from app.adapters.sheets.base import PendingWrite
from app.adapters.sheets.google_sheets import GoogleSheetsDocumentStore
from app.core.errors import DocumentStoreAppError, QuotaExceededAppError, TransientIOAppError

SID = "spreadsheet-1"


def _http_error(status: int, body: dict) -> HttpError:
    return HttpError(
        resp=httplib2.Response({"status": status}),
        content=json.dumps(body).encode("utf-8"),
    )


class FakeRequest:
    def __init__(self, outcome) -> None:
        self.outcome = outcome

    def execute(self):
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        if callable(self.outcome):
            return self.outcome()
        return self.outcome


class FakeSheetsService:
    """Stand-in for the ``sheets`` v4 resource chain, recording call kwargs."""

    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls: list[tuple[str, dict]] = []

    def spreadsheets(self):
        return self

    def values(self):
        return self

    def get(self, **kwargs):
        self.calls.append(("get", kwargs))
        return FakeRequest(self.outcome)

    def batchUpdate(self, **kwargs):
        self.calls.append(("batchUpdate", kwargs))
        return FakeRequest(self.outcome)


@pytest.mark.asyncio
async def test_get_values_returns_rows() -> None:
    service = FakeSheetsService({"range": "Stores!A1:B2", "values": [["id", "name"], ["1", "강남점"]]})
    store = GoogleSheetsDocumentStore(service)

    rows = await store.get_values(SID, "Stores!A1:B2")

    assert rows == [["id", "name"], ["1", "강남점"]]
    assert service.calls == [("get", {"spreadsheetId": SID, "range": "Stores!A1:B2"})]


@pytest.mark.asyncio
async def test_empty_range_returns_no_rows() -> None:
    store = GoogleSheetsDocumentStore(FakeSheetsService({"range": "Stores!A:Z"}))

    assert await store.get_values(SID, "Stores!A:Z") == []


@pytest.mark.asyncio
async def test_batch_update_sends_one_user_entered_request() -> None:
    service = FakeSheetsService({"totalUpdatedCells": 4})
    store = GoogleSheetsDocumentStore(service)
    writes = [
        PendingWrite(range="Stores!I2:J2", values=[[37.4979, 127.0276]]),
        PendingWrite(range="Stores!I5:J5", values=[["", ""]]),
    ]

    result = await store.batch_update(SID, writes)

    assert result == {"totalUpdatedCells": 4}
    assert len(service.calls) == 1
    method, kwargs = service.calls[0]
    assert method == "batchUpdate"
    assert kwargs["spreadsheetId"] == SID
    assert kwargs["body"] == {
        "valueInputOption": "USER_ENTERED",
        "data": [
            {"range": "Stores!I2:J2", "values": [[37.4979, 127.0276]]},
            {"range": "Stores!I5:J5", "values": [["", ""]]},
        ],
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, body",
    [
        (429, {"error": {"code": 429, "message": "Too many requests"}}),
        (
            403,
            {
                "error": {
                    "code": 403,
                    "status": "RESOURCE_EXHAUSTED",
                    "message": "Quota exceeded for quota metric 'Read requests'",
                }
            },
        ),
    ],
)
async def test_quota_http_errors_become_quota_errors(status: int, body: dict) -> None:
    store = GoogleSheetsDocumentStore(FakeSheetsService(_http_error(status, body)))

    with pytest.raises(QuotaExceededAppError) as exc_info:
        await store.get_values(SID, "Stores!A:Z")

    assert exc_info.value.code == "sheets_quota_exceeded"
    assert isinstance(exc_info.value.__cause__, HttpError)


@pytest.mark.asyncio
async def test_other_http_errors_become_document_store_errors() -> None:
    error = _http_error(404, {"error": {"code": 404, "message": "Requested entity was not found."}})
    store = GoogleSheetsDocumentStore(FakeSheetsService(error))

    with pytest.raises(DocumentStoreAppError) as exc_info:
        await store.batch_update(SID, [PendingWrite(range="Stores!I2:J2", values=[[1, 2]])])

    assert exc_info.value.code == "sheets_api_error"
    assert exc_info.value.details["http_status"] == 404
    assert "Requested entity was not found." in exc_info.value.message


@pytest.mark.asyncio
async def test_slow_request_times_out_as_transient_error() -> None:
    release = threading.Event()

    def slow() -> dict:
        release.wait(5)
        return {"values": []}

    store = GoogleSheetsDocumentStore(FakeSheetsService(slow), timeout_seconds=0.05)
    try:
        with pytest.raises(TransientIOAppError) as exc_info:
            await store.get_values(SID, "Stores!A:Z")
    finally:
        release.set()

    assert exc_info.value.code == "sheets_timeout"


@pytest.mark.asyncio
async def test_network_failure_becomes_transient_error() -> None:
    store = GoogleSheetsDocumentStore(FakeSheetsService(ConnectionResetError("reset by peer")))

    with pytest.raises(TransientIOAppError) as exc_info:
        await store.get_values(SID, "Stores!A:Z")

    assert exc_info.value.code == "sheets_network_error"


@pytest.mark.asyncio
async def test_limiter_retries_translated_quota_errors() -> None:
    attempts = {"count": 0}

    def flaky() -> dict:
        attempts["count"] += 1
        if attempts["count"] == 1:
            raise _http_error(429, {"error": {"code": 429, "message": "Too many requests"}})
        return {"values": [["ok"]]}

    store = GoogleSheetsDocumentStore(FakeSheetsService(flaky))
    limiter = CooldownRateLimiter(
        name="sheets",
        cooldown_seconds=0,
        retry_policy=RetryPolicy(max_attempts=2, base_delay_seconds=0, jitter_seconds=0),
    )

    rows = await limiter.execute(lambda: store.get_values(SID, "Stores!A:Z"))

    assert rows == [["ok"]]
    assert attempts["count"] == 2
