"""In-process cooldown rate limiter with quota-aware retries.

Notes:
- Per-process only: running multiple workers multiplies the effective rate.
- Pacing is measured dispatch start to dispatch start; retries reserve a slot
  like any other dispatch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, TypeVar

from app.adapters.rate_limit.base import AbstractRateLimiter, AsyncCall
from app.adapters.rate_limit.policy import RetryPolicy, quota_backoff_policy

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CooldownRateLimiter(AbstractRateLimiter):
    """Serialize outbound calls with a minimum spacing between dispatches.

    Every caller sharing an instance shares ``last_call_at``: whoever arrives
    first reserves the next free slot, so pacing holds across concurrent
    requests. Calls failing with a quota error are retried following the
    configured :class:`RetryPolicy`; any other error propagates unchanged.
    """

    def __init__(
        self,
        *,
        name: str = "default",
        cooldown_seconds: float = 0.5,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            name: Label used in log events (e.g. "sheets", "geocoding").
            cooldown_seconds: Minimum spacing between dispatch starts.
            retry_policy: Policy for quota errors; defaults to 5 attempts with
                3s/6s/12s/24s backoff.
            clock: Monotonic time source in seconds.
            sleep: Coroutine used to suspend the caller.

        Raises:
            ValueError: If cooldown_seconds is negative.
        """
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")

        self.name = name
        self._cooldown = cooldown_seconds
        self._policy = retry_policy or quota_backoff_policy()
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call_at: float | None = None

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    @property
    def last_call_at(self) -> float | None:
        return self._last_call_at

    async def _reserve_slot(self) -> None:
        """Reserve the next dispatch slot and wait until it starts."""

        async with self._lock:
            now = self._clock()
            if self._last_call_at is None:
                start_at = now
            else:
                start_at = max(now, self._last_call_at + self._cooldown)
            self._last_call_at = start_at

        wait = start_at - now
        if wait > 0:
            await self._sleep(wait)

    async def execute(self, call: AsyncCall[T]) -> T:
        attempt = 0
        while True:
            await self._reserve_slot()
            try:
                return await call()
            except Exception as exc:
                if not self._policy.should_retry(attempt, exc):
                    if self._policy.is_retryable(exc):
                        logger.error(
                            "rate_limiter.retries_exhausted",
                            extra={
                                "limiter": self.name,
                                "attempts": attempt + 1,
                                "error_type": type(exc).__name__,
                            },
                        )
                    raise

                delay = self._policy.backoff(attempt)
                logger.warning(
                    "rate_limiter.retry",
                    extra={
                        "limiter": self.name,
                        "attempt": attempt + 1,
                        "max_attempts": self._policy.max_attempts,
                        "delay_s": round(delay, 3),
                        "error_type": type(exc).__name__,
                    },
                )
                await self._sleep(delay)
                attempt += 1
