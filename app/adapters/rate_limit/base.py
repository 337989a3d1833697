"""Rate limiter interfaces.

Consumers depend on this abstraction so the in-process limiter can later be
swapped for a shared one (e.g. Redis-backed) without touching call sites.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")

AsyncCall = Callable[[], Awaitable[T]]


class AbstractRateLimiter(ABC):
    """Interface for limiters wrapping outbound calls."""

    @abstractmethod
    async def execute(self, call: AsyncCall[T]) -> T:
        """Dispatch ``call`` respecting the limiter's pacing and retry rules.

        Args:
            call: Zero-argument coroutine factory performing the outbound call.
                It may be invoked more than once when retries happen.

        Returns:
            Whatever ``call`` returns on its first successful attempt.

        Raises:
            Exception: The last error raised by ``call`` when it is not
                retryable or retries are exhausted, unchanged.
        """
        raise NotImplementedError
