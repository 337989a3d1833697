"""Application-level exception types.

Adapters translate provider failures (HTTP statuses, client exceptions,
timeouts) into these types so retry decisions and HTTP responses are made
from one taxonomy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    service: str
    target: str
    range: str
    pending_writes: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class ConfigurationAppError(AppError):
    """Raised when a required external service is not configured."""


class QuotaExceededAppError(AppError):
    """Raised when an external API rejects a call for quota/rate reasons."""


class TransientIOAppError(AppError):
    """Raised on network errors and timeouts talking to an external API."""


class DocumentStoreAppError(AppError):
    """Raised when the spreadsheet API fails for a non-quota reason."""


class GeocodingAppError(AppError):
    """Raised when the geocoding API fails or answers with an unusable payload."""


class NotificationAppError(AppError):
    """Raised when a notification could not be delivered."""


class SyncInProgressAppError(AppError):
    """Raised when a sync run is triggered while one is already running."""


class SyncWriteAppError(AppError):
    """Raised when the end-of-run batched write fails."""
