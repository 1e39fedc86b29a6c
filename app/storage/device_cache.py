"""Expiring mirror of user records on local storage.

Entries are stored as JSON objects ``{"payload", "storedAtEpochMs", "expiresAtEpochMs"}``.
The cache is an optimization, never the source of truth: no public method raises
for storage or parse failures, they are logged and treated as a miss.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

from app.core.clock import MS_PER_DAY, Clock, SystemClock
from app.storage.kv import KeyValueStorage, utf8_size

logger = logging.getLogger(__name__)

NAMESPACE_PREFIX = "coverforge_"
DEFAULT_TTL_MS = 7 * MS_PER_DAY


class StorageKeys:
    RESUME = "coverforge_resume_v2"
    APPLICATION = "coverforge_application_v2"
    USER_PREFERENCES = "coverforge_preferences_v2"
    SESSION_DATA = "coverforge_session_v2"
    CUSTOM_PROMPTS = "coverforge_custom_prompts_v2"


def user_key(base: str, user_id: str) -> str:
    return f"{base}:{user_id}"


@dataclass(frozen=True)
class CachedEntry:
    payload: Any
    stored_at_ms: int
    expires_at_ms: int

    def to_json(self) -> str:
        return json.dumps(
            {
                "payload": self.payload,
                "storedAtEpochMs": self.stored_at_ms,
                "expiresAtEpochMs": self.expires_at_ms,
            },
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, raw: str) -> "CachedEntry | None":
        """Return None for anything that is not a TTL entry, including other valid JSON."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(data, dict) or "payload" not in data:
            return None
        stored_at = data.get("storedAtEpochMs")
        expires_at = data.get("expiresAtEpochMs")
        if not _is_epoch(stored_at) or not _is_epoch(expires_at):
            return None
        return cls(payload=data["payload"], stored_at_ms=int(stored_at), expires_at_ms=int(expires_at))

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expires_at_ms


def _is_epoch(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


@dataclass(frozen=True)
class CacheError:
    operation: str
    key: str
    message: str


@dataclass(frozen=True)
class CacheResult:
    error: CacheError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class UsageReport:
    item_count: int
    total_bytes: int
    namespaced_item_count: int
    namespaced_bytes: int


@dataclass(frozen=True)
class CacheEntryInfo:
    key: str
    exists: bool
    size_bytes: int = 0
    age_ms: int = 0
    remaining_ms: int = 0
    expires_at_ms: int | None = None


class DeviceCache:
    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Clock | None = None,
        ttl_ms: int = DEFAULT_TTL_MS,
        namespace_prefix: str = NAMESPACE_PREFIX,
    ):
        self._storage = storage
        self._clock = clock or SystemClock()
        self._ttl_ms = int(ttl_ms)
        self._namespace_prefix = namespace_prefix

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    @property
    def namespace_prefix(self) -> str:
        return self._namespace_prefix

    def _write(self, key: str, payload: Any) -> CacheResult:
        now = self._clock.now_ms()
        entry = CachedEntry(payload=payload, stored_at_ms=now, expires_at_ms=now + self._ttl_ms)
        try:
            serialized = entry.to_json()
        except (TypeError, ValueError) as exc:
            return CacheResult(CacheError("serialize", key, str(exc)))
        try:
            self._storage.set_item(key, serialized)
        except Exception as exc:  # noqa: BLE001 - any storage failure is a cache miss, not a request failure
            return CacheResult(CacheError("write", key, str(exc)))
        return CacheResult()

    def store(self, key: str, payload: Any) -> None:
        result = self._write(key, payload)
        if result.ok:
            logger.debug("device_cache_stored key=%s ttl_ms=%s", key, self._ttl_ms)
            return
        error = result.error
        logger.warning("device_cache_store_failed key=%s op=%s: %s", error.key, error.operation, error.message)

    def _read_entry(self, key: str) -> CachedEntry | None:
        try:
            raw = self._storage.get_item(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("device_cache_read_failed key=%s: %s", key, exc)
            return None
        if raw is None:
            return None
        entry = CachedEntry.from_json(raw)
        if entry is None:
            logger.warning("device_cache_malformed_entry key=%s", key)
        return entry

    def _remove(self, key: str) -> bool:
        try:
            self._storage.remove_item(key)
            return True
        except Exception as exc:  # noqa: BLE001
            logger.warning("device_cache_remove_failed key=%s: %s", key, exc)
            return False

    def retrieve(self, key: str) -> Any | None:
        entry = self._read_entry(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock.now_ms()):
            logger.info("device_cache_expired key=%s", key)
            self._remove(key)
            return None
        return entry.payload

    def exists(self, key: str) -> bool:
        return self.retrieve(key) is not None

    def remaining_ttl(self, key: str) -> int:
        entry = self._read_entry(key)
        if entry is None:
            return 0
        return max(0, entry.expires_at_ms - self._clock.now_ms())

    def entry_info(self, key: str) -> CacheEntryInfo:
        try:
            raw = self._storage.get_item(key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("device_cache_read_failed key=%s: %s", key, exc)
            raw = None
        entry = CachedEntry.from_json(raw) if raw is not None else None
        if raw is None or entry is None:
            return CacheEntryInfo(key=key, exists=False)
        now = self._clock.now_ms()
        return CacheEntryInfo(
            key=key,
            exists=True,
            size_bytes=utf8_size(raw),
            age_ms=max(0, now - entry.stored_at_ms),
            remaining_ms=max(0, entry.expires_at_ms - now),
            expires_at_ms=entry.expires_at_ms,
        )

    def _all_keys(self) -> list[str]:
        try:
            return list(self._storage.keys())
        except Exception as exc:  # noqa: BLE001
            logger.warning("device_cache_list_keys_failed: %s", exc)
            return []

    def sweep_expired(self) -> int:
        now = self._clock.now_ms()
        expired: list[str] = []
        for key in self._all_keys():
            try:
                raw = self._storage.get_item(key)
            except Exception:  # noqa: BLE001
                continue
            if raw is None:
                continue
            entry = CachedEntry.from_json(raw)
            if entry is not None and entry.is_expired(now):
                expired.append(key)

        removed = sum(1 for key in expired if self._remove(key))
        logger.info("device_cache_sweep removed=%s", removed)
        return removed

    def usage_report(self) -> UsageReport:
        item_count = 0
        total_bytes = 0
        namespaced_items = 0
        namespaced_bytes = 0
        for key in self._all_keys():
            try:
                raw = self._storage.get_item(key)
            except Exception:  # noqa: BLE001
                continue
            if raw is None:
                continue
            size = utf8_size(raw)
            item_count += 1
            total_bytes += size
            if key.startswith(self._namespace_prefix):
                namespaced_items += 1
                namespaced_bytes += size
        return UsageReport(
            item_count=item_count,
            total_bytes=total_bytes,
            namespaced_item_count=namespaced_items,
            namespaced_bytes=namespaced_bytes,
        )

    def clear_namespace(self) -> int:
        keys = [key for key in self._all_keys() if key.startswith(self._namespace_prefix)]
        removed = sum(1 for key in keys if self._remove(key))
        logger.info("device_cache_cleared removed=%s", removed)
        return removed
