from __future__ import annotations

from pydantic import BaseModel, Field


class StorageOutcome(BaseModel):
    synced: bool
    notice: str | None = None


class UsageReportResponse(BaseModel):
    item_count: int = Field(ge=0)
    total_bytes: int = Field(ge=0)
    namespaced_item_count: int = Field(ge=0)
    namespaced_bytes: int = Field(ge=0)


class SweepResponse(BaseModel):
    removed: int = Field(ge=0)


class CacheEntryInfoResponse(BaseModel):
    key: str
    exists: bool
    size_bytes: int = 0
    age_ms: int = 0
    remaining_ms: int = 0
    expires_at_ms: int | None = None
