"""Sheets whose coordinate columns are kept in sync with their address column.

Column indices are zero-based (A=0). Latitude and longitude must be adjacent
so one row's update is a single two-cell range.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from app.core.config import Settings

ADDRESS_PLACEHOLDERS = frozenset({"주소확인필요"})


def column_letter(index: int) -> str:
    """Convert a zero-based column index to its A1 letters (0 -> A, 26 -> AA)."""
    if index < 0:
        raise ValueError("column index must be >= 0")
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


@dataclass(frozen=True)
class SyncTarget:
    """Layout of one address-bearing sheet.

    Attributes:
        name: Target name used in routes and logs.
        sheet_name: Sheet title.
        spreadsheet_id: Spreadsheet holding the sheet.
        key_prefix: Namespace of the entity ids in the hash map.
        key_columns: Columns whose values, joined by "_", identify a row.
        address_column: Column holding the address text.
        latitude_column: Latitude column; longitude is the next column.
        status_column: Optional row status column.
        active_values: Status values meaning "active"; others clear coordinates.
        placeholder_addresses: Address values treated as empty.
        header_rows: Rows above the data.
        read_range: Columns read for each run.
    """

    name: str
    sheet_name: str
    spreadsheet_id: str
    key_prefix: str
    key_columns: tuple[int, ...]
    address_column: int
    latitude_column: int
    longitude_column: int
    status_column: int | None = None
    active_values: frozenset[str] = field(default_factory=frozenset)
    placeholder_addresses: frozenset[str] = ADDRESS_PLACEHOLDERS
    header_rows: int = 1
    read_range: str = "A:Z"

    def __post_init__(self) -> None:
        if self.longitude_column != self.latitude_column + 1:
            raise ValueError("longitude_column must directly follow latitude_column")
        if not self.key_columns:
            raise ValueError("key_columns must not be empty")
        if self.status_column is not None and not self.active_values:
            raise ValueError("active_values are required when status_column is set")
        if self.header_rows < 0:
            raise ValueError("header_rows must be >= 0")

    def coordinate_range(self, row_number: int) -> str:
        """A1 cell range (without sheet name) of a row's latitude/longitude pair."""
        return (
            f"{column_letter(self.latitude_column)}{row_number}:"
            f"{column_letter(self.longitude_column)}{row_number}"
        )


def build_default_targets(cfg: Settings) -> dict[str, SyncTarget]:
    """Targets for the store and sales point sheets that are configured."""

    targets: dict[str, SyncTarget] = {}

    if cfg.sheets.spreadsheet_id:
        targets["stores"] = SyncTarget(
            name="stores",
            sheet_name=cfg.sheets.store_sheet_name,
            spreadsheet_id=cfg.sheets.spreadsheet_id,
            key_prefix="store_",
            key_columns=(0,),
            address_column=11,   # L
            latitude_column=8,   # I
            longitude_column=9,  # J
            status_column=12,    # M
            active_values=frozenset({"사용"}),
        )

    if cfg.sheets.sales_spreadsheet_id:
        targets["salespoints"] = SyncTarget(
            name="salespoints",
            sheet_name=cfg.sheets.sales_sheet_name,
            spreadsheet_id=cfg.sheets.sales_spreadsheet_id,
            key_prefix="salespoint_",
            key_columns=(0, 1),
            address_column=7,    # H
            latitude_column=5,   # F
            longitude_column=6,  # G
        )

    return targets
