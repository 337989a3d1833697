from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.services import get_pipeline
from app.schemas.sync import SyncSummary
from app.services.geocoding_sync_service import GeocodingSyncPipeline

router = APIRouter(prefix="/coordinates", tags=["Coordinates"])


@router.post("/{target}/sync", response_model=SyncSummary)
async def sync_coordinates(
    target: str,
    pipeline: GeocodingSyncPipeline = Depends(get_pipeline),
) -> SyncSummary:
    """Re-geocode rows of ``target`` whose address changed since the last run.

    Inactive rows and rows without a usable address get their coordinates
    cleared. All updates are written in one batched call. Answers 409 when a
    run of the same target is already in progress.
    """
    return await pipeline.run()
