from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from app.ai.types import AIClient
from app.analytics.db import log_event
from app.core.ai_rate_limit import check_ai_rate_limit
from app.core.errors import GO_HOME, RE_UPLOAD, RecordNotFound
from app.core.rate_limit import rate_limit
from app.core.security import require_user_id
from app.dependencies import get_ai_client, get_record_service
from app.schemas.application import (
    ApplicationEnvelope,
    ApplicationPatch,
    CoverLetterRequest,
    JobApplicationRecord,
)
from app.services.cover_letter import extract_company_name, extract_position_title, generate_cover_letter
from app.services.input_validation import require_text_content
from app.services.pdf_export import cover_letter_filename, render_cover_letter_pdf
from app.services.records import RecordService

router = APIRouter()

NO_RESUME_MESSAGE = "No resume found. Please upload your resume before generating a cover letter."
NO_APPLICATION_MESSAGE = "No cover letter found. Generate one first."


async def _resolve_custom_prompt(user_id: str, payload: CoverLetterRequest, records: RecordService) -> str | None:
    if payload.custom_prompt_text and payload.custom_prompt_text.strip():
        return require_text_content(payload.custom_prompt_text, field_label="Custom prompt")
    if payload.custom_prompt_id:
        prompt = await records.get_custom_prompt(user_id, payload.custom_prompt_id)
        if prompt is None:
            raise RecordNotFound(
                f"Custom prompt '{payload.custom_prompt_id}' was not found.",
                recovery_actions=(GO_HOME,),
            )
        return prompt.prompt
    return None


@router.post("/cover-letter", response_model=ApplicationEnvelope)
@rate_limit()
async def create_cover_letter(
    request: Request,
    payload: CoverLetterRequest,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
    client: AIClient = Depends(get_ai_client),
):
    _ = request
    job_description = require_text_content(payload.job_description, field_label="Job description")
    resume = await records.load_resume(user_id)
    if resume is None:
        raise RecordNotFound(NO_RESUME_MESSAGE, recovery_actions=(RE_UPLOAD, GO_HOME))

    custom_prompt = await _resolve_custom_prompt(user_id, payload, records)
    check_ai_rate_limit(user_id, "cover_letter")
    body = await generate_cover_letter(resume, job_description, client=client, custom_prompt=custom_prompt)

    now = datetime.now(timezone.utc)
    application = JobApplicationRecord(
        company=(payload.company or "").strip() or extract_company_name(job_description),
        position=(payload.position or "").strip() or extract_position_title(job_description),
        job_description=job_description,
        cover_letter_body=body,
        custom_prompt_text=custom_prompt,
        created_at=now,
        updated_at=now,
    )
    storage = await records.save_application(user_id, application)
    log_event(
        "cover_letter_generated",
        user_id=user_id,
        detail={"custom_prompt": custom_prompt is not None, "synced": storage.synced},
    )
    return ApplicationEnvelope(application=application, storage=storage)


@router.get("/application", response_model=ApplicationEnvelope)
async def get_application(
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    application = await records.load_application(user_id)
    if application is None:
        raise RecordNotFound(NO_APPLICATION_MESSAGE, recovery_actions=(GO_HOME,))
    return ApplicationEnvelope(application=application)


@router.patch("/application", response_model=ApplicationEnvelope)
async def update_application(
    payload: ApplicationPatch,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    application = await records.load_application(user_id)
    if application is None:
        raise RecordNotFound(NO_APPLICATION_MESSAGE, recovery_actions=(GO_HOME,))

    changes = payload.model_dump(exclude_none=True)
    if "cover_letter_body" in changes:
        changes["cover_letter_body"] = require_text_content(
            changes["cover_letter_body"], field_label="Cover letter", max_length=20000
        )
    updated = application.model_copy(update={**changes, "updated_at": datetime.now(timezone.utc)})
    storage = await records.save_application(user_id, updated)
    return ApplicationEnvelope(application=updated, storage=storage)


@router.get("/cover-letter/pdf")
async def export_cover_letter_pdf(
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    resume = await records.load_resume(user_id)
    if resume is None:
        raise RecordNotFound(NO_RESUME_MESSAGE, recovery_actions=(RE_UPLOAD, GO_HOME))
    application = await records.load_application(user_id)
    if application is None:
        raise RecordNotFound(NO_APPLICATION_MESSAGE, recovery_actions=(GO_HOME,))

    content = render_cover_letter_pdf(resume, application)
    filename = cover_letter_filename(resume.name, application.company)
    log_event("cover_letter_exported", user_id=user_id, detail={"bytes": len(content)})
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
