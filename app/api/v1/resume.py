from typing import Any

from fastapi import APIRouter, Body, Depends, File, Request, UploadFile

from app.ai.types import AIClient
from app.analytics.db import log_event
from app.core.ai_rate_limit import check_ai_rate_limit
from app.core.config import settings
from app.core.errors import RecordNotFound, UploadRejected
from app.core.rate_limit import rate_limit
from app.core.security import require_user_id
from app.dependencies import get_ai_client, get_record_service
from app.parsing.parse import parse_document_bytes
from app.parsing.upload_checks import check_resume_upload
from app.schemas.resume import ParseTextRequest, ResumeEnvelope, ResumeRecord, ValidationResult
from app.services.records import RecordService
from app.services.resume_parser import ParseOutcome, parse_resume_text
from app.services.validator import validate_resume

router = APIRouter()

READ_CHUNK_BYTES = 1024 * 64


async def _read_upload(file: UploadFile, max_bytes: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadRejected(
                f"File size must be less than {max_bytes // (1024 * 1024)}MB.",
                status_code=413,
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def _store_parsed(
    user_id: str,
    outcome: ParseOutcome,
    records: RecordService,
    *,
    source_type: str,
    warnings: list[str],
) -> ResumeEnvelope:
    validation = validate_resume(outcome.resume)
    log_event(
        "resume_parsed",
        user_id=user_id,
        detail={
            "source_type": source_type,
            "used_fallback": outcome.used_fallback,
            "score": validation.overall_score,
        },
    )
    storage = await records.save_resume(user_id, outcome.resume)
    log_event("resume_saved", user_id=user_id, detail={"synced": storage.synced})
    return ResumeEnvelope(
        resume=outcome.resume,
        validation=validation,
        storage=storage,
        source_type=source_type,
        used_fallback=outcome.used_fallback,
        warnings=[*warnings, *outcome.warnings],
    )


@router.post("/resume/upload", response_model=ResumeEnvelope)
@rate_limit()
async def upload_resume(
    request: Request,
    file: UploadFile = File(...),
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
    client: AIClient = Depends(get_ai_client),
):
    _ = request
    max_bytes = max(1, settings.max_upload_mb) * 1024 * 1024
    content = await _read_upload(file, max_bytes)
    check_resume_upload(file.filename, content, max_bytes=max_bytes)
    check_ai_rate_limit(user_id, "resume_parse")

    parsed = parse_document_bytes(file.filename or "resume.txt", content)
    outcome = await parse_resume_text(parsed.text, client=client, source_type=parsed.source_label)
    return await _store_parsed(
        user_id,
        outcome,
        records,
        source_type=parsed.source_type,
        warnings=parsed.parsing_warnings,
    )


@router.post("/resume/parse-text", response_model=ResumeEnvelope)
@rate_limit()
async def parse_resume_from_text(
    request: Request,
    payload: ParseTextRequest,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
    client: AIClient = Depends(get_ai_client),
):
    _ = request
    check_ai_rate_limit(user_id, "resume_parse")
    outcome = await parse_resume_text(payload.text, client=client, source_type="TEXT")
    return await _store_parsed(user_id, outcome, records, source_type="text", warnings=[])


@router.get("/resume", response_model=ResumeEnvelope)
async def get_resume(
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    resume = await records.load_resume(user_id)
    if resume is None:
        raise RecordNotFound("No resume found. Please upload your resume first.")
    return ResumeEnvelope(resume=resume, validation=validate_resume(resume))


@router.put("/resume", response_model=ResumeEnvelope)
async def update_resume(
    payload: ResumeRecord,
    user_id: str = Depends(require_user_id),
    records: RecordService = Depends(get_record_service),
):
    storage = await records.save_resume(user_id, payload)
    log_event("resume_saved", user_id=user_id, detail={"synced": storage.synced, "edited": True})
    return ResumeEnvelope(resume=payload, validation=validate_resume(payload), storage=storage)


@router.post("/resume/validate", response_model=ValidationResult)
async def validate_resume_record(payload: dict[str, Any] = Body(...), _: str = Depends(require_user_id)):
    return validate_resume(payload)
