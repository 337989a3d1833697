"""Pydantic schemas for coordinate synchronization runs."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncSummary(BaseModel):
    """Outcome of one geocoding sync run over a target sheet."""

    target: str = Field(..., description="Sync target name (e.g. 'stores').")
    total_rows: int = Field(..., description="Data rows read from the sheet (header excluded).")
    candidates: int = Field(
        ...,
        description="Active rows with a usable address, i.e. rows eligible for geocoding.",
    )
    geocoded: int = Field(0, description="Rows whose coordinates were (re)geocoded and queued.")
    cleared: int = Field(0, description="Rows whose coordinates were queued for clearing.")
    skipped: int = Field(0, description="Rows left untouched (hash unchanged or nothing to clear).")
    not_found: int = Field(0, description="Rows the geocoder had no candidate for.")
    failed: int = Field(0, description="Rows whose geocoding failed; retried next run.")
    updated: int = Field(0, description="geocoded + cleared.")
    written_ranges: int = Field(0, description="Ranges sent in the single batched write.")
    hashes_persisted: bool = Field(
        False,
        description="Whether the updated address hash map was saved.",
    )
    notified: bool = Field(False, description="Whether a summary notification was delivered.")
    duration_ms: float = Field(0.0, description="Wall-clock duration of the run.")
    message: str = Field("", description="Human-readable one-line summary.")
