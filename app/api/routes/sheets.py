from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.core.errors import ValidationAppError
from app.core.services import get_gateway
from app.schemas.cache import SheetRowsResponse
from app.services.sheet_gateway import DEFAULT_READ_RANGE, SheetGateway, a1_range

router = APIRouter(prefix="/sheets", tags=["Sheets"])


@router.get("/{sheet_name}/rows", response_model=SheetRowsResponse)
async def read_sheet_rows(
    sheet_name: str,
    cell_range: str = Query(DEFAULT_READ_RANGE, alias="range", description="A1 range without sheet name"),
    refresh: bool = Query(False, description="Bypass the cache and re-read the sheet"),
    gateway: SheetGateway = Depends(get_gateway),
) -> SheetRowsResponse:
    """Read rows of a sheet in the main spreadsheet.

    Served from the response cache when a fresh copy exists; otherwise the
    read goes through the shared rate limiter and repopulates the cache.
    """
    if not sheet_name.strip() or "!" in cell_range:
        raise ValidationAppError(
            code="invalid_range",
            message="sheet_name must be non-empty and range must not contain a sheet name",
            details={"range": cell_range},
        )

    rows, cached = await gateway.read_rows(
        sheet_name,
        cell_range=cell_range,
        use_cache=not refresh,
    )
    return SheetRowsResponse(
        sheet_name=sheet_name,
        range=a1_range(sheet_name, cell_range),
        rows=rows,
        row_count=len(rows),
        cached=cached,
    )
