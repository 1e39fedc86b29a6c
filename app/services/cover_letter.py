from __future__ import annotations

import logging
import re
import time

from app.ai.types import AIClient
from app.analytics.db import log_ai_run
from app.core.errors import (
    ConfigurationError,
    ErrorCategory,
    UpstreamServiceError,
    classify_exception,
)
from app.schemas.resume import ResumeRecord
from app.services.prompt_templates import (
    COVER_LETTER_PROMPT,
    JOB_DESCRIPTION_PLACEHOLDER,
    RESUME_DATA_PLACEHOLDER,
    format_resume_for_prompt,
)

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = "Target Company"
DEFAULT_POSITION = "Desired Position"
GENERIC_FAILURE_MESSAGE = "Failed to generate cover letter. Please try again in a moment."

SIGN_OFF = "Sincerely,"
_DUPLICATE_SIGN_OFF_RE = re.compile(r"Sincerely,\s*Sincerely,")
_TRAILING_SIGN_OFF_RE = re.compile(r"\s*Sincerely,\s*$")
_BRACKETED_RE = re.compile(r"\[.*?\]")
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")

_COMPANY_PATTERNS = (
    re.compile(r"(?im)^\s*company(?:\s+name)?\s*[:\-]\s*(.+?)\s*$"),
    re.compile(r"\b(?:at|join)\s+([A-Z][\w&.\-]*(?:\s+[A-Z][\w&.\-]*){0,3})"),
    re.compile(r"\b([A-Z][\w&.\-]*(?:\s+[A-Z][\w&.\-]*){0,3})\s+is\s+(?:hiring|looking|seeking)"),
)
_POSITION_PATTERNS = (
    re.compile(r"(?im)^\s*(?:job\s+title|position|role|title)\s*[:\-]\s*(.+?)\s*$"),
    re.compile(
        r"\b(?:hiring|seeking|for)\s+(?:an?\s+)?((?:[A-Z][\w+#./-]*\s+){0,4}"
        r"(?:Engineer|Developer|Manager|Designer|Analyst|Scientist|Specialist|Consultant|"
        r"Architect|Administrator|Coordinator|Director|Lead|Intern|Associate))\b"
    ),
)
_NOT_A_COMPANY = {"the", "our", "a", "an", "this", "we", "you"}


def build_cover_letter_prompt(resume: ResumeRecord, job_description: str, template: str | None = None) -> str:
    prompt = template if template and template.strip() else COVER_LETTER_PROMPT
    return prompt.replace(RESUME_DATA_PLACEHOLDER, format_resume_for_prompt(resume)).replace(
        JOB_DESCRIPTION_PLACEHOLDER, job_description
    )


def clean_cover_letter(text: str, name: str) -> str:
    letter = (text or "").strip()
    letter = _DUPLICATE_SIGN_OFF_RE.sub(SIGN_OFF, letter)

    if SIGN_OFF in letter:
        head, _, tail = letter.partition(SIGN_OFF)
        tail = tail.strip()
        if tail.startswith(name):
            tail = tail[len(name):].strip()
        letter = f"{head.rstrip()}\n\n{SIGN_OFF}\n{name}"
        if tail:
            letter = f"{letter}\n{tail}"
    else:
        letter = f"{letter}\n\n{SIGN_OFF}\n{name}"

    letter = _BRACKETED_RE.sub("", letter)
    letter = _EXTRA_NEWLINES_RE.sub("\n\n", letter)
    return letter.strip()


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> str | None:
    for pattern in patterns:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip().rstrip(".,;:")
            if candidate and candidate.lower() not in _NOT_A_COMPANY:
                return candidate[:100]
    return None


def extract_company_name(job_description: str) -> str:
    return _first_match(_COMPANY_PATTERNS, job_description or "") or DEFAULT_COMPANY


def extract_position_title(job_description: str) -> str:
    return _first_match(_POSITION_PATTERNS, job_description or "") or DEFAULT_POSITION


async def generate_cover_letter(
    resume: ResumeRecord,
    job_description: str,
    *,
    client: AIClient,
    custom_prompt: str | None = None,
) -> str:
    prompt = build_cover_letter_prompt(resume, job_description, custom_prompt)
    started = time.perf_counter()
    try:
        reply = await client.generate_text(prompt)
    except ConfigurationError:
        raise
    except Exception as exc:  # noqa: BLE001 - every model failure is surfaced as an upstream error
        category = classify_exception(exc)
        logger.warning("cover_letter_generation_failed category=%s: %s", category.value, exc)
        log_ai_run(
            operation="cover_letter",
            status="error",
            error_category=category.value,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        message = GENERIC_FAILURE_MESSAGE if category is ErrorCategory.UNKNOWN else None
        raise UpstreamServiceError(category, message) from exc

    letter = clean_cover_letter(reply, resume.name)
    log_ai_run(
        operation="cover_letter",
        status="success",
        latency_ms=int((time.perf_counter() - started) * 1000),
    )
    logger.info(
        "cover_letter_generated custom_prompt=%s words=%s",
        bool(custom_prompt),
        len(letter.split()),
    )
    return letter
