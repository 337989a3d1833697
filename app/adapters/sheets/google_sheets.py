"""Google Sheets document store adapter."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.adapters.rate_limit.policy import is_quota_error
from app.adapters.sheets.base import AbstractDocumentStore, CellValues, PendingWrite
from app.core.errors import DocumentStoreAppError, QuotaExceededAppError, TransientIOAppError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class GoogleSheetsDocumentStore(AbstractDocumentStore):
    """Spreadsheet access through the official Google API client.

    The client library is synchronous, so every request runs in the default
    executor under a hard timeout. Provider errors are translated into the
    application error taxonomy before they reach the rate limiter.
    """

    def __init__(self, service: Any, timeout_seconds: float = 60.0) -> None:
        """Initialize with an already-built ``sheets`` v4 service resource.

        Args:
            service: Resource returned by ``googleapiclient.discovery.build``.
            timeout_seconds: Hard timeout per request.
        """
        self.service = service
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_service_account_file(
        cls,
        credentials_file: str,
        timeout_seconds: float = 60.0,
    ) -> GoogleSheetsDocumentStore:
        credentials = service_account.Credentials.from_service_account_file(
            credentials_file,
            scopes=SCOPES,
        )
        service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return cls(service, timeout_seconds=timeout_seconds)

    async def _run(self, operation: str, request: Callable[[], dict[str, Any]]) -> dict[str, Any]:
        """Execute a blocking API request with timeout and error translation."""
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, request),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "sheets.timeout",
                extra={"operation": operation, "timeout_seconds": self.timeout_seconds},
            )
            raise TransientIOAppError(
                code="sheets_timeout",
                message=f"Spreadsheet {operation} timed out after {self.timeout_seconds}s",
                details={"service": "sheets"},
            ) from exc
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            if is_quota_error(exc):
                raise QuotaExceededAppError(
                    code="sheets_quota_exceeded",
                    message=f"Spreadsheet API quota exceeded during {operation}",
                    details={"service": "sheets", "http_status": 429},
                ) from exc
            raise DocumentStoreAppError(
                code="sheets_api_error",
                message=f"Spreadsheet API error during {operation}: {exc.reason}",
                details={"service": "sheets", "http_status": int(status) if status else 0},
            ) from exc
        except OSError as exc:
            raise TransientIOAppError(
                code="sheets_network_error",
                message=f"Network error during spreadsheet {operation}: {exc}",
                details={"service": "sheets"},
            ) from exc

    async def get_values(self, spreadsheet_id: str, cell_range: str) -> CellValues:
        def request() -> dict[str, Any]:
            return self.service.spreadsheets().values().get(
                spreadsheetId=spreadsheet_id,
                range=cell_range,
            ).execute()

        result = await self._run("read", request)
        values = result.get("values", [])
        logger.debug("sheets.read", extra={"range": cell_range, "rows": len(values)})
        return values

    async def batch_update(self, spreadsheet_id: str, writes: list[PendingWrite]) -> dict[str, Any]:
        body = {
            "valueInputOption": "USER_ENTERED",
            "data": [write.as_payload() for write in writes],
        }

        def request() -> dict[str, Any]:
            return self.service.spreadsheets().values().batchUpdate(
                spreadsheetId=spreadsheet_id,
                body=body,
            ).execute()

        result = await self._run("batch write", request)
        logger.info(
            "sheets.batch_update",
            extra={
                "ranges": len(writes),
                "updated_cells": result.get("totalUpdatedCells"),
            },
        )
        return result
