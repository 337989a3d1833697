"""Pydantic schemas for cache administration and cached sheet reads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CacheStatusResponse(BaseModel):
    total: int = Field(..., description="Entries currently stored.")
    valid: int = Field(..., description="Entries whose TTL has not elapsed.")
    expired: int = Field(..., description="Expired entries not yet evicted.")
    max_size: int = Field(..., description="Configured capacity.")
    default_ttl_seconds: float = Field(..., description="TTL applied when none is given.")


class CacheInvalidationResponse(BaseModel):
    removed: int = Field(..., description="Number of entries removed.")


class SheetRowsResponse(BaseModel):
    """Rows of one sheet range, served from cache when possible."""

    sheet_name: str
    range: str = Field(..., description="A1 range that was read, including the sheet name.")
    rows: list[list[Any]] = Field(default_factory=list)
    row_count: int = 0
    cached: bool = Field(False, description="True when served from the response cache.")
