from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from app.core.security import require_api_key, require_user_id
from app.dependencies import get_device_cache
from app.schemas.storage import CacheEntryInfoResponse, SweepResponse, UsageReportResponse
from app.storage.device_cache import DeviceCache, StorageKeys, user_key

router = APIRouter(dependencies=[Depends(require_api_key)])

ENTRY_KEYS = {
    "resume": StorageKeys.RESUME,
    "application": StorageKeys.APPLICATION,
    "custom_prompts": StorageKeys.CUSTOM_PROMPTS,
}


@router.get("/storage/usage", response_model=UsageReportResponse)
def storage_usage(cache: DeviceCache = Depends(get_device_cache)):
    return UsageReportResponse(**asdict(cache.usage_report()))


@router.post("/storage/sweep", response_model=SweepResponse)
def sweep_storage(cache: DeviceCache = Depends(get_device_cache)):
    return SweepResponse(removed=cache.sweep_expired())


@router.get("/storage/entries", response_model=list[CacheEntryInfoResponse])
def storage_entries(
    user_id: str = Depends(require_user_id),
    kind: list[str] = Query(default=list(ENTRY_KEYS)),
    cache: DeviceCache = Depends(get_device_cache),
):
    return [
        CacheEntryInfoResponse(**asdict(cache.entry_info(user_key(ENTRY_KEYS[name], user_id))))
        for name in kind
        if name in ENTRY_KEYS
    ]
