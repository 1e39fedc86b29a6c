from fastapi import APIRouter, Depends

from app.analytics.db import log_event
from app.core.security import require_user_id
from app.dependencies import get_record_service
from app.schemas.prompts import CustomPrompt, CustomPromptInput, CustomPromptList, DefaultPromptResponse
from app.schemas.storage import StorageOutcome
from app.services.input_validation import require_text_content
from app.services.prompt_templates import (
    COVER_LETTER_PROMPT,
    DEFAULT_PROMPT_NAME,
    JOB_DESCRIPTION_PLACEHOLDER,
    RESUME_DATA_PLACEHOLDER,
)
from app.services.records import RecordService

router = APIRouter()


@router.get("/prompts", response_model=CustomPromptList)
async def list_prompts(
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    return CustomPromptList(prompts=await records.list_custom_prompts(user_id))


@router.get("/prompts/default", response_model=DefaultPromptResponse)
def default_prompt():
    return DefaultPromptResponse(
        name=DEFAULT_PROMPT_NAME,
        prompt=COVER_LETTER_PROMPT,
        placeholders=[RESUME_DATA_PLACEHOLDER, JOB_DESCRIPTION_PLACEHOLDER],
    )


@router.post("/prompts", response_model=CustomPrompt)
async def create_prompt(
    payload: CustomPromptInput,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    name = require_text_content(payload.name, field_label="Prompt name", max_length=120)
    text = require_text_content(payload.prompt, field_label="Prompt")
    prompt, storage = await records.save_custom_prompt(user_id, name, text)
    log_event("custom_prompt_saved", user_id=user_id, detail={"synced": storage.synced})
    return prompt


@router.put("/prompts/{prompt_id}", response_model=CustomPrompt)
async def update_prompt(
    prompt_id: str,
    payload: CustomPromptInput,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    name = require_text_content(payload.name, field_label="Prompt name", max_length=120)
    text = require_text_content(payload.prompt, field_label="Prompt")
    prompt, storage = await records.save_custom_prompt(user_id, name, text, prompt_id=prompt_id)
    log_event("custom_prompt_saved", user_id=user_id, detail={"synced": storage.synced, "updated": True})
    return prompt


@router.delete("/prompts/{prompt_id}", response_model=StorageOutcome)
async def delete_prompt(
    prompt_id: str,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    return await records.delete_custom_prompt(user_id, prompt_id)
