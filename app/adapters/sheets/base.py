from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

CellValues = list[list[Any]]


@dataclass(frozen=True)
class PendingWrite:
	"""One range update queued for the end-of-run batch write.

	Attributes:
		range: A1 range including the sheet name, e.g. ``"Stores!I2:J2"``.
		values: Row-major cell values for the range.
	"""

	range: str
	values: CellValues

	def as_payload(self) -> dict[str, Any]:
		return {"range": self.range, "values": self.values}


class AbstractDocumentStore(ABC):
	"""Interface for the spreadsheet document store."""

	@abstractmethod
	async def get_values(self, spreadsheet_id: str, cell_range: str) -> CellValues:
		"""Read the rows of ``cell_range``.

		Args:
			spreadsheet_id: Target spreadsheet.
			cell_range: A1 range including the sheet name.

		Returns:
			CellValues: Rows of cell values; trailing empty cells may be omitted.
		"""
		...

	@abstractmethod
	async def batch_update(self, spreadsheet_id: str, writes: list[PendingWrite]) -> dict[str, Any]:
		"""Write every range of ``writes`` in a single API call.

		Returns:
			dict[str, Any]: Provider acknowledgement.
		"""
		...
