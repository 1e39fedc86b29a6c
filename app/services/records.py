"""Write-through / read-through persistence of user records.

Every save goes to the remote store and to the device cache; a remote failure
degrades to a cache-only save with a notice. Loads prefer the cache, fall back
to the remote store and repopulate the cache on a remote hit.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.core.errors import GO_HOME, RecordNotFound
from app.schemas.application import JobApplicationRecord
from app.schemas.prompts import CustomPrompt
from app.schemas.resume import ResumeRecord
from app.schemas.storage import StorageOutcome
from app.storage.device_cache import DeviceCache, StorageKeys, user_key
from app.storage.inflight import InFlightRegistry
from app.storage.remote import RemoteUserStore

logger = logging.getLogger(__name__)

LOCAL_ONLY_NOTICE = "Saved locally, will sync later."
NOT_CONFIGURED_NOTICE = "Cloud storage is not configured; saved on this device only."

RESUME_PROPERTY = "resume"
APPLICATION_PROPERTY = "application"
CUSTOM_PROMPTS_PROPERTY = "custom_prompts"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(model: type[ModelT], payload: Any, *, key: str) -> ModelT | None:
    if payload is None:
        return None
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.warning("stored_record_invalid key=%s: %s", key, exc.errors()[:1])
        return None


class RecordService:
    def __init__(
        self,
        remote: RemoteUserStore | None,
        cache: DeviceCache,
        inflight: InFlightRegistry | None = None,
    ):
        self._remote = remote
        self._cache = cache
        self._inflight = inflight or InFlightRegistry()

    @property
    def cache(self) -> DeviceCache:
        return self._cache

    @property
    def remote_configured(self) -> bool:
        return self._remote is not None

    async def _remote_write(self, user_id: str, patch: dict[str, Any]) -> StorageOutcome:
        if self._remote is None:
            return StorageOutcome(synced=False, notice=NOT_CONFIGURED_NOTICE)
        try:
            await asyncio.to_thread(self._remote.create_or_update_user_record, user_id, patch)
        except Exception as exc:  # noqa: BLE001 - the cache copy keeps the save usable
            logger.warning("remote_write_failed properties=%s: %s", sorted(patch), exc)
            return StorageOutcome(synced=False, notice=LOCAL_ONLY_NOTICE)
        return StorageOutcome(synced=True)

    async def _remote_read(self, user_id: str) -> dict[str, Any] | None:
        if self._remote is None:
            return None
        try:
            return await asyncio.to_thread(self._remote.read_user_record, user_id)
        except Exception as exc:  # noqa: BLE001 - a failed read is treated as "not found"
            logger.warning("remote_read_failed: %s", exc)
            return None

    async def _save(self, user_id: str, base_key: str, patch: dict[str, Any], payload: Any) -> StorageOutcome:
        outcome = await self._remote_write(user_id, patch)
        self._cache.store(user_key(base_key, user_id), payload)
        return outcome

    async def _load_property(self, user_id: str, base_key: str, prop: str) -> Any:
        key = user_key(base_key, user_id)
        cached = self._cache.retrieve(key)
        if cached is not None:
            logger.debug("record_cache_hit key=%s", key)
            return cached

        async def from_remote() -> Any:
            record = await self._remote_read(user_id)
            value = (record or {}).get(prop)
            if value is not None:
                self._cache.store(key, value)
            return value

        return await self._inflight.run(key, from_remote)

    async def save_resume(self, user_id: str, resume: ResumeRecord) -> StorageOutcome:
        payload = resume.model_dump(mode="json")
        patch = {RESUME_PROPERTY: payload, "last_resume_update": _utc_now().isoformat()}
        outcome = await self._save(user_id, StorageKeys.RESUME, patch, payload)
        logger.info("resume_saved synced=%s", outcome.synced)
        return outcome

    async def load_resume(self, user_id: str) -> ResumeRecord | None:
        payload = await self._load_property(user_id, StorageKeys.RESUME, RESUME_PROPERTY)
        return _coerce(ResumeRecord, payload, key=StorageKeys.RESUME)

    async def save_application(self, user_id: str, application: JobApplicationRecord) -> StorageOutcome:
        payload = application.model_dump(mode="json")
        patch = {APPLICATION_PROPERTY: payload}
        outcome = await self._save(user_id, StorageKeys.APPLICATION, patch, payload)
        logger.info("application_saved synced=%s", outcome.synced)
        return outcome

    async def load_application(self, user_id: str) -> JobApplicationRecord | None:
        payload = await self._load_property(user_id, StorageKeys.APPLICATION, APPLICATION_PROPERTY)
        return _coerce(JobApplicationRecord, payload, key=StorageKeys.APPLICATION)

    async def list_custom_prompts(self, user_id: str) -> list[CustomPrompt]:
        payload = await self._load_property(user_id, StorageKeys.CUSTOM_PROMPTS, CUSTOM_PROMPTS_PROPERTY)
        if not isinstance(payload, list):
            return []
        prompts = [_coerce(CustomPrompt, item, key=StorageKeys.CUSTOM_PROMPTS) for item in payload]
        valid = [prompt for prompt in prompts if prompt is not None]
        return sorted(valid, key=lambda prompt: prompt.created_at, reverse=True)

    async def get_custom_prompt(self, user_id: str, prompt_id: str) -> CustomPrompt | None:
        for prompt in await self.list_custom_prompts(user_id):
            if prompt.id == prompt_id:
                return prompt
        return None

    async def _save_prompts(self, user_id: str, prompts: list[CustomPrompt]) -> StorageOutcome:
        payload = [prompt.model_dump(mode="json") for prompt in prompts]
        return await self._save(
            user_id,
            StorageKeys.CUSTOM_PROMPTS,
            {CUSTOM_PROMPTS_PROPERTY: payload},
            payload,
        )

    async def save_custom_prompt(
        self,
        user_id: str,
        name: str,
        prompt: str,
        prompt_id: str | None = None,
    ) -> tuple[CustomPrompt, StorageOutcome]:
        prompts = await self.list_custom_prompts(user_id)
        existing = next((item for item in prompts if item.id == prompt_id), None) if prompt_id else None
        if prompt_id and existing is None:
            raise RecordNotFound(f"Custom prompt '{prompt_id}' was not found.", recovery_actions=(GO_HOME,))

        saved = CustomPrompt(
            id=prompt_id or f"prompt_{uuid.uuid4().hex[:12]}",
            name=name,
            prompt=prompt,
            created_at=existing.created_at if existing else _utc_now(),
        )
        remaining = [item for item in prompts if item.id != saved.id]
        outcome = await self._save_prompts(user_id, [saved, *remaining])
        logger.info("custom_prompt_saved updated=%s synced=%s", existing is not None, outcome.synced)
        return saved, outcome

    async def delete_custom_prompt(self, user_id: str, prompt_id: str) -> StorageOutcome:
        prompts = await self.list_custom_prompts(user_id)
        remaining = [item for item in prompts if item.id != prompt_id]
        if len(remaining) == len(prompts):
            raise RecordNotFound(f"Custom prompt '{prompt_id}' was not found.", recovery_actions=(GO_HOME,))
        outcome = await self._save_prompts(user_id, remaining)
        logger.info("custom_prompt_deleted synced=%s", outcome.synced)
        return outcome
