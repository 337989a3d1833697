from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


class AbstractGeocodingClient(ABC):
    """Interface for address geocoders."""

    @abstractmethod
    async def geocode(self, address: str) -> Coordinates | None:
        """Resolve free-form address text to coordinates.

        Args:
            address: Raw address text as entered in the sheet.

        Returns:
            Coordinates of the first candidate, or None when nothing matched.

        Raises:
            AppError: When the service fails after the client's own retries.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        return None
