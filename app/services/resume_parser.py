from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any

from app.ai.types import AIClient
from app.analytics.db import log_ai_run
from app.core.errors import (
    ConfigurationError,
    ErrorCategory,
    UpstreamServiceError,
    classify_exception,
)
from app.schemas.resume import (
    DEFAULT_EMAIL,
    DEFAULT_LINKEDIN,
    DEFAULT_LOCATION,
    DEFAULT_NAME,
    DEFAULT_PHONE,
    DEFAULT_SUMMARY,
    PLACEHOLDER_EDUCATION,
    PLACEHOLDER_EXPERIENCE,
    PLACEHOLDER_SKILLS,
    ResumeRecord,
)
from app.services.prompt_templates import build_extraction_prompt

logger = logging.getLogger(__name__)

JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")
EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}")
LOCATION_RE = re.compile(r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?,\s*[A-Z]{2}(?:\s+\d{5})?")
LINKEDIN_RE = re.compile(r"linkedin\.com/in/([a-zA-Z0-9-]+)", re.IGNORECASE)
NAME_PATTERNS = (
    re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?$"),
    re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z][a-z]*){1,3}$"),
)
NAME_SCAN_LINES = 15

COMMON_SKILLS = (
    "JavaScript",
    "Python",
    "Java",
    "React",
    "Node.js",
    "SQL",
    "HTML",
    "CSS",
    "TypeScript",
    "Angular",
    "Vue",
    "PHP",
    "C++",
    "C#",
    "Ruby",
    "Go",
    "AWS",
    "Azure",
    "Docker",
    "Kubernetes",
    "Git",
    "MongoDB",
    "PostgreSQL",
)

PROPAGATED_CATEGORIES = frozenset({ErrorCategory.AUTH_QUOTA, ErrorCategory.NETWORK})


class ResumeExtractionError(ValueError):
    """The model answered, but not with a usable resume object."""


@dataclass
class ParseOutcome:
    resume: ResumeRecord
    used_fallback: bool = False
    warnings: list[str] = field(default_factory=list)


def _clean_scalar(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _clean_items(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def extract_json_object(reply: str) -> dict[str, Any]:
    match = JSON_BLOCK_RE.search(reply or "")
    if not match:
        raise ResumeExtractionError("AI response did not contain valid JSON format")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ResumeExtractionError("Failed to parse AI response as valid JSON") from exc
    if not isinstance(parsed, dict):
        raise ResumeExtractionError("AI response JSON is not an object")
    return parsed


def record_from_model_output(data: dict[str, Any]) -> ResumeRecord:
    return ResumeRecord(
        name=_clean_scalar(data.get("name"), DEFAULT_NAME),
        email=_clean_scalar(data.get("email"), DEFAULT_EMAIL),
        phone=_clean_scalar(data.get("phone"), DEFAULT_PHONE),
        location=_clean_scalar(data.get("location"), DEFAULT_LOCATION),
        linkedin_handle=_clean_scalar(data.get("linkedin"), DEFAULT_LINKEDIN),
        skills=_clean_items(data.get("skills")),
        experience_entries=_clean_items(data.get("experience")),
        education_entries=_clean_items(data.get("education")),
        summary=_clean_scalar(data.get("summary"), DEFAULT_SUMMARY),
    )


def _find_name(lines: list[str]) -> str:
    for line in lines[:NAME_SCAN_LINES]:
        lowered = line.lower()
        if not 3 < len(line) < 60:
            continue
        if "@" in line or re.search(r"\d{3}", line) or "resume" in lowered or "cv" in lowered:
            continue
        if any(pattern.match(line) for pattern in NAME_PATTERNS):
            return line
    return DEFAULT_NAME


def _find_skills(text: str) -> list[str]:
    lowered = text.lower()
    return [skill for skill in COMMON_SKILLS if skill.lower() in lowered]


def fallback_extract(text: str) -> ResumeRecord:
    """Pattern-based extraction used when the model is unavailable or unhelpful."""
    source = text or ""
    lines = [line.strip() for line in source.splitlines() if line.strip()]

    email_match = EMAIL_RE.search(source)
    phone_match = PHONE_RE.search(source)
    location_match = LOCATION_RE.search(source)
    linkedin_match = LINKEDIN_RE.search(source)
    skills = _find_skills(source)

    return ResumeRecord(
        name=_find_name(lines),
        email=email_match.group(0) if email_match else DEFAULT_EMAIL,
        phone=phone_match.group(0).strip() if phone_match else DEFAULT_PHONE,
        location=location_match.group(0) if location_match else DEFAULT_LOCATION,
        linkedin_handle=linkedin_match.group(1) if linkedin_match else DEFAULT_LINKEDIN,
        skills=skills or list(PLACEHOLDER_SKILLS),
        experience_entries=list(PLACEHOLDER_EXPERIENCE),
        education_entries=list(PLACEHOLDER_EDUCATION),
        summary=DEFAULT_SUMMARY,
    )


def _fallback_outcome(text: str, warning: str) -> ParseOutcome:
    return ParseOutcome(
        resume=fallback_extract(text),
        used_fallback=True,
        warnings=[warning, "Fields were extracted with basic pattern matching; please review them."],
    )


async def parse_resume_text(text: str, *, client: AIClient, source_type: str = "TEXT") -> ParseOutcome:
    if not (text or "").strip():
        logger.warning("resume_parse_empty_text source=%s", source_type)
        return _fallback_outcome("", "No readable text was found in the resume.")

    started = time.perf_counter()
    try:
        reply = await client.generate_text(build_extraction_prompt(text))
        resume = record_from_model_output(extract_json_object(reply))
    except ConfigurationError:
        raise
    except ResumeExtractionError as exc:
        logger.warning("resume_parse_invalid_reply source=%s: %s", source_type, exc)
        log_ai_run(
            operation="resume_parse",
            status="invalid_reply",
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return _fallback_outcome(text, "The AI response could not be read.")
    except Exception as exc:  # noqa: BLE001 - unknown model failures degrade to pattern matching
        category = classify_exception(exc)
        logger.warning("resume_parse_failed source=%s category=%s: %s", source_type, category.value, exc)
        log_ai_run(
            operation="resume_parse",
            status="error",
            error_category=category.value,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        if category in PROPAGATED_CATEGORIES:
            raise UpstreamServiceError(category) from exc
        return _fallback_outcome(text, "The AI service was unavailable.")

    log_ai_run(
        operation="resume_parse",
        status="success",
        latency_ms=int((time.perf_counter() - started) * 1000),
    )
    logger.info(
        "resume_parsed source=%s skills=%s experience=%s education=%s",
        source_type,
        len(resume.skills),
        len(resume.experience_entries),
        len(resume.education_entries),
    )
    return ParseOutcome(resume=resume)
