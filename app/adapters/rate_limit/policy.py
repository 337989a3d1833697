"""Retry policies for outbound calls.

A policy decides whether a failure is worth retrying and how long to wait
before the next attempt. Policies hold no state, so one instance can be shared
by every caller and unit-tested without any network call.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable

from app.core.errors import QuotaExceededAppError, TransientIOAppError

QUOTA_MESSAGE_MARKERS = ("RESOURCE_EXHAUSTED", "Quota exceeded", "quota exceeded")


def _status_code_of(error: BaseException) -> int | None:
    """Best-effort HTTP status extraction across client libraries.

    Handles ``httpx.HTTPStatusError`` (``response.status_code``),
    ``googleapiclient.errors.HttpError`` (``resp.status``) and errors exposing
    ``status_code`` or an integer ``code`` directly.
    """

    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status

    resp = getattr(error, "resp", None)
    status = getattr(resp, "status", None)
    if status is not None:
        try:
            return int(status)
        except (TypeError, ValueError):
            return None
    return None


def is_quota_error(error: BaseException) -> bool:
    """Return True when the error signals quota or rate-limit exhaustion."""

    if isinstance(error, QuotaExceededAppError):
        return True
    if _status_code_of(error) == 429:
        return True
    message = str(error)
    return any(marker in message for marker in QUOTA_MESSAGE_MARKERS)


def is_transient_error(error: BaseException) -> bool:
    """Return True for network failures and timeouts."""

    return isinstance(error, (TransientIOAppError, TimeoutError))


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with jitter.

    ``backoff(attempt)`` is ``min(max_delay, base_delay * multiplier**attempt
    + uniform(0, jitter))`` where ``attempt`` is the zero-based index of the
    attempt that just failed.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay_seconds: Delay after the first failure (before jitter).
        multiplier: Growth factor per attempt; 1.0 gives a fixed delay.
        max_delay_seconds: Upper bound applied after jitter.
        jitter_seconds: Upper bound of the random addition.
        retry_on: Predicate selecting retryable errors.
    """

    max_attempts: int = 5
    base_delay_seconds: float = 3.0
    multiplier: float = 2.0
    max_delay_seconds: float = 60.0
    jitter_seconds: float = 2.0
    retry_on: Callable[[BaseException], bool] = is_quota_error
    random_fn: Callable[[], float] = field(default=random.random, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must be >= 0")
        if self.jitter_seconds < 0:
            raise ValueError("jitter_seconds must be >= 0")

    def backoff(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""

        delay = self.base_delay_seconds * (self.multiplier ** attempt)
        delay += self.random_fn() * self.jitter_seconds
        return min(self.max_delay_seconds, delay)

    def is_retryable(self, error: BaseException) -> bool:
        return self.retry_on(error)

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """Whether another attempt follows the failed zero-based ``attempt``."""

        return attempt < self.max_attempts - 1 and self.is_retryable(error)


def quota_backoff_policy(max_attempts: int = 5) -> RetryPolicy:
    """Policy used by the document API limiter: ~3s, 6s, 12s, 24s, capped at 60s."""

    return RetryPolicy(max_attempts=max_attempts)


def fixed_quota_policy(delay_seconds: float = 5.0) -> RetryPolicy:
    """One extra attempt after a fixed wait when a service answers 429."""

    return RetryPolicy(
        max_attempts=2,
        base_delay_seconds=delay_seconds,
        multiplier=1.0,
        max_delay_seconds=delay_seconds,
        jitter_seconds=0.0,
        retry_on=is_quota_error,
    )


def transient_io_policy(base_delay_seconds: float = 2.0, retries: int = 2) -> RetryPolicy:
    """Exponential backoff (2s, 4s) for network failures and timeouts."""

    return RetryPolicy(
        max_attempts=retries + 1,
        base_delay_seconds=base_delay_seconds,
        multiplier=2.0,
        max_delay_seconds=60.0,
        jitter_seconds=0.0,
        retry_on=is_transient_error,
    )
