from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.storage import StorageOutcome

DEFAULT_NAME = "Professional"
DEFAULT_EMAIL = "contact@email.com"
DEFAULT_PHONE = "+1 (555) 000-0000"
DEFAULT_LOCATION = "Location Not Specified"
DEFAULT_LINKEDIN = "profile"
DEFAULT_SUMMARY = "Experienced professional with a proven track record of success."

PLACEHOLDER_SKILLS = ["Professional Skills"]
PLACEHOLDER_EXPERIENCE = ["Professional Experience Available"]
PLACEHOLDER_EDUCATION = ["Educational Background Available"]

SourceType = Literal["pdf", "doc", "docx", "txt", "text"]


class ResumeRecord(BaseModel):
    name: str = Field(default=DEFAULT_NAME, max_length=200)
    email: str = Field(default=DEFAULT_EMAIL, max_length=320)
    phone: str = Field(default=DEFAULT_PHONE, max_length=64)
    location: str = Field(default=DEFAULT_LOCATION, max_length=200)
    linkedin_handle: str = Field(default=DEFAULT_LINKEDIN, max_length=200)
    skills: list[str] = Field(default_factory=list, max_length=200)
    experience_entries: list[str] = Field(default_factory=list, max_length=100)
    education_entries: list[str] = Field(default_factory=list, max_length=50)
    summary: str = Field(default=DEFAULT_SUMMARY, max_length=5000)


class FieldCheck(BaseModel):
    field: str
    is_present: bool
    is_sentinel_default: bool
    is_valid: bool
    confidence_points: int = Field(ge=0)
    issues: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    is_valid: bool
    field_issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    fields: list[FieldCheck] = Field(default_factory=list)


class ParseTextRequest(BaseModel):
    text: str = Field(default="", max_length=200000)


class ResumeEnvelope(BaseModel):
    resume: ResumeRecord
    validation: ValidationResult
    storage: StorageOutcome | None = None
    source_type: SourceType | None = None
    used_fallback: bool = False
    warnings: list[str] = Field(default_factory=list)
