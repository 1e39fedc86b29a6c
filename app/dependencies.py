from __future__ import annotations

from functools import lru_cache

from app.ai.factory import get_ai_client as build_ai_client
from app.ai.types import AIClient
from app.core.clock import MS_PER_DAY, SystemClock
from app.core.config import settings
from app.services.records import RecordService
from app.storage.device_cache import DeviceCache
from app.storage.inflight import InFlightRegistry
from app.storage.kv import SqliteKeyValueStorage
from app.storage.remote import RemoteUserStore, build_remote_store


@lru_cache(maxsize=1)
def get_device_cache() -> DeviceCache:
    return DeviceCache(
        SqliteKeyValueStorage(settings.cache_db_path),
        clock=SystemClock(),
        ttl_ms=max(1, settings.cache_ttl_days) * MS_PER_DAY,
    )


@lru_cache(maxsize=1)
def get_remote_store() -> RemoteUserStore | None:
    return build_remote_store(settings)


@lru_cache(maxsize=1)
def get_inflight_registry() -> InFlightRegistry:
    return InFlightRegistry()


def get_record_service() -> RecordService:
    return RecordService(get_remote_store(), get_device_cache(), get_inflight_registry())


@lru_cache(maxsize=1)
def get_ai_client() -> AIClient:
    return build_ai_client()
