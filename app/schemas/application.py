from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.storage import StorageOutcome


class JobApplicationRecord(BaseModel):
    company: str = Field(default="", max_length=200)
    position: str = Field(default="", max_length=200)
    job_description: str = ""
    cover_letter_body: str = ""
    custom_prompt_text: str | None = None
    created_at: datetime
    updated_at: datetime


class CoverLetterRequest(BaseModel):
    job_description: str = Field(default="", max_length=10000)
    company: str | None = Field(default=None, max_length=200)
    position: str | None = Field(default=None, max_length=200)
    custom_prompt_id: str | None = Field(default=None, max_length=100)
    custom_prompt_text: str | None = Field(default=None, max_length=10000)


class ApplicationPatch(BaseModel):
    company: str | None = Field(default=None, max_length=200)
    position: str | None = Field(default=None, max_length=200)
    cover_letter_body: str | None = Field(default=None, max_length=20000)


class ApplicationEnvelope(BaseModel):
    application: JobApplicationRecord
    storage: StorageOutcome | None = None
