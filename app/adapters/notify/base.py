from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class NotificationField:
    name: str
    value: str


class AbstractNotifier(ABC):
    """Sink for short operational summaries."""

    @abstractmethod
    async def notify(self, title: str, fields: list[NotificationField]) -> None:
        """Deliver one summary.

        Raises:
            NotificationAppError: When delivery fails. Callers treat this as
                non-fatal.
        """
        ...

    async def aclose(self) -> None:
        return None
