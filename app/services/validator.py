"""Completeness scoring for extracted resumes.

Each field earns points only when it is well formed and no longer holds its
"not found" placeholder. The result drives the quality indicator and the
remediation hints shown next to an uploaded resume. Pure; never raises.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable

from app.core.config.scoring import get_scoring_value
from app.schemas.resume import (
    DEFAULT_EMAIL,
    DEFAULT_LINKEDIN,
    DEFAULT_LOCATION,
    DEFAULT_NAME,
    DEFAULT_PHONE,
    PLACEHOLDER_EDUCATION,
    PLACEHOLDER_EXPERIENCE,
    PLACEHOLDER_SKILLS,
    FieldCheck,
    ResumeRecord,
    ValidationResult,
)

logger = logging.getLogger(__name__)

FULL_NAME_RE = re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SCALAR_SENTINELS = {
    "name": DEFAULT_NAME,
    "email": DEFAULT_EMAIL,
    "phone": DEFAULT_PHONE,
    "location": DEFAULT_LOCATION,
    "linkedin_handle": DEFAULT_LINKEDIN,
}
LIST_PLACEHOLDERS = {
    "skills": PLACEHOLDER_SKILLS,
    "experience_entries": PLACEHOLDER_EXPERIENCE,
    "education_entries": PLACEHOLDER_EDUCATION,
}


def _cfg(path: str, default: int) -> int:
    try:
        value = get_scoring_value(f"resume_validation.{path}", default)
    except RuntimeError as exc:
        logger.warning("scoring_config_unavailable path=%s: %s", path, exc)
        return default
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return default


def _as_mapping(record: ResumeRecord | Mapping[str, Any] | None) -> Mapping[str, Any]:
    if record is None:
        return {}
    if isinstance(record, ResumeRecord):
        return record.model_dump()
    if isinstance(record, Mapping):
        return record
    return {}


def _scalar(data: Mapping[str, Any], field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str):
        return SCALAR_SENTINELS[field]
    return value


def _string_items(data: Mapping[str, Any], field: str) -> list[str]:
    value = data.get(field)
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def _scalar_check(field: str, value: str, *, points: int, issue: str | None, missing_issue: str) -> FieldCheck:
    is_default = value == SCALAR_SENTINELS[field]
    if is_default:
        return FieldCheck(
            field=field,
            is_present=False,
            is_sentinel_default=True,
            is_valid=False,
            confidence_points=0,
            issues=[missing_issue],
        )
    is_valid = issue is None
    return FieldCheck(
        field=field,
        is_present=bool(value.strip()),
        is_sentinel_default=False,
        is_valid=is_valid,
        confidence_points=points if is_valid else 0,
        issues=[] if is_valid else [issue],
    )


def check_name(value: str) -> FieldCheck:
    min_length = _cfg("name.min_length", 2)
    max_length = _cfg("name.max_length", 50)
    issue = None
    if len(value) < min_length:
        issue = "Name appears to be too short"
    elif len(value) > max_length:
        issue = "Name appears to be too long - might be incorrect"
    if FULL_NAME_RE.match(value):
        points = _cfg("name.points_full_name", 20)
    else:
        points = _cfg("name.points", 15)
    return _scalar_check(
        "name", value, points=points, issue=issue, missing_issue="Name not extracted - using default value"
    )


def check_email(value: str) -> FieldCheck:
    issue = None if EMAIL_RE.match(value) else "Email format appears invalid"
    return _scalar_check(
        "email",
        value,
        points=_cfg("email.points", 15),
        issue=issue,
        missing_issue="Email not extracted - using default value",
    )


def check_phone(value: str) -> FieldCheck:
    min_run = max(1, _cfg("phone.min_run", 10))
    pattern = re.compile(r"[\d\s\-()+]{%d,}" % min_run)
    issue = None if pattern.search(value) else "Phone number format might be incomplete"
    return _scalar_check(
        "phone",
        value,
        points=_cfg("phone.points", 10),
        issue=issue,
        missing_issue="Phone number not extracted - using default value",
    )


def check_location(value: str) -> FieldCheck:
    issue = None if len(value) >= _cfg("location.min_length", 3) else "Location appears incomplete"
    if "," in value:
        points = _cfg("location.points", 10)
    else:
        points = _cfg("location.points_without_region", 7)
    return _scalar_check(
        "location",
        value,
        points=points,
        issue=issue,
        missing_issue="Location not extracted - using default value",
    )


def check_linkedin_handle(value: str) -> FieldCheck:
    min_length = _cfg("linkedin_handle.min_length", 3)
    issue = None if len(value) >= min_length else "LinkedIn username appears too short"
    return _scalar_check(
        "linkedin_handle",
        value,
        points=_cfg("linkedin_handle.points", 5),
        issue=issue,
        missing_issue="LinkedIn profile not extracted - using default value",
    )


def _list_check(
    field: str,
    items: list[str],
    *,
    is_entry_valid: Callable[[str], bool],
    points_per_entry: int,
    max_points: int,
    issues_for: Callable[[int], list[str]],
) -> tuple[FieldCheck, int]:
    valid = [item for item in items if is_entry_valid(item)]
    is_default = [item.strip() for item in valid] == LIST_PLACEHOLDERS[field]
    valid_count = 0 if is_default else len(valid)
    points = min(max_points, points_per_entry * valid_count)
    check = FieldCheck(
        field=field,
        is_present=bool(items),
        is_sentinel_default=is_default,
        is_valid=valid_count >= 1,
        confidence_points=points,
        issues=issues_for(valid_count),
    )
    return check, valid_count


def check_skills(items: list[str]) -> tuple[FieldCheck, int]:
    few = _cfg("skills.few_entries", 3)
    too_many = _cfg("skills.too_many_entries", 20)

    def issues_for(count: int) -> list[str]:
        if count == 0:
            return ["No skills extracted from resume"]
        if count < few:
            return ["Very few skills extracted - consider adding more to your resume"]
        if count > too_many:
            return ["Many skills extracted - some might be incorrectly categorized"]
        return []

    return _list_check(
        "skills",
        items,
        is_entry_valid=lambda item: bool(item.strip()),
        points_per_entry=_cfg("skills.points_per_entry", 2),
        max_points=_cfg("skills.max_points", 20),
        issues_for=issues_for,
    )


def check_experience_entries(items: list[str]) -> tuple[FieldCheck, int]:
    min_length = _cfg("experience_entries.min_entry_length", 10)
    few = _cfg("experience_entries.few_entries", 2)

    def issues_for(count: int) -> list[str]:
        if count == 0:
            return ["No work experience extracted from resume"]
        if count < few:
            return ["Limited work experience extracted"]
        return []

    return _list_check(
        "experience_entries",
        items,
        is_entry_valid=lambda item: len(item.strip()) >= min_length,
        points_per_entry=_cfg("experience_entries.points_per_entry", 5),
        max_points=_cfg("experience_entries.max_points", 20),
        issues_for=issues_for,
    )


def check_education_entries(items: list[str]) -> tuple[FieldCheck, int]:
    min_length = _cfg("education_entries.min_entry_length", 5)

    def issues_for(count: int) -> list[str]:
        if count == 0:
            return ["No education information extracted from resume"]
        return []

    return _list_check(
        "education_entries",
        items,
        is_entry_valid=lambda item: len(item.strip()) >= min_length,
        points_per_entry=_cfg("education_entries.points_per_entry", 7),
        max_points=_cfg("education_entries.max_points", 15),
        issues_for=issues_for,
    )


# Evaluated in order; each predicate sees the per-field checks and valid list counts.
SUGGESTION_RULES: tuple[tuple[Callable[[dict[str, FieldCheck], dict[str, int]], bool], str], ...] = (
    (
        lambda checks, counts: checks["name"].is_sentinel_default,
        "Consider manually entering your name if it wasn't extracted correctly",
    ),
    (
        lambda checks, counts: checks["email"].is_sentinel_default,
        "Ensure your email address is clearly visible in the resume",
    ),
    (
        lambda checks, counts: checks["phone"].is_sentinel_default,
        "Add a phone number so employers can reach you",
    ),
    (
        lambda checks, counts: checks["location"].is_sentinel_default,
        "Include your city and state to help with location-based matching",
    ),
    (
        lambda checks, counts: checks["linkedin_handle"].is_sentinel_default,
        "Add your LinkedIn profile URL to strengthen your application",
    ),
    (
        lambda checks, counts: counts["skills"] < _cfg("skills.suggest_below", 5),
        "Consider adding more skills to your resume for better matching",
    ),
    (
        lambda checks, counts: counts["experience_entries"] < _cfg("experience_entries.suggest_below", 2),
        "Include more detailed work experience entries",
    ),
    (
        lambda checks, counts: counts["education_entries"] < _cfg("education_entries.suggest_below", 1),
        "Add your education history, including degree and institution",
    ),
)


def validate_resume(record: ResumeRecord | Mapping[str, Any] | None) -> ValidationResult:
    data = _as_mapping(record)

    skills_check, skills_count = check_skills(_string_items(data, "skills"))
    experience_check, experience_count = check_experience_entries(_string_items(data, "experience_entries"))
    education_check, education_count = check_education_entries(_string_items(data, "education_entries"))

    checks = [
        check_name(_scalar(data, "name")),
        check_email(_scalar(data, "email")),
        check_phone(_scalar(data, "phone")),
        check_location(_scalar(data, "location")),
        check_linkedin_handle(_scalar(data, "linkedin_handle")),
        skills_check,
        experience_check,
        education_check,
    ]
    counts = {
        "skills": skills_count,
        "experience_entries": experience_count,
        "education_entries": education_count,
    }

    total = sum(check.confidence_points for check in checks if check.is_valid and not check.is_sentinel_default)
    overall_score = max(0, min(100, total))

    by_field = {check.field: check for check in checks}
    suggestions = [text for predicate, text in SUGGESTION_RULES if predicate(by_field, counts)]
    field_issues = [issue for check in checks for issue in check.issues if issue]

    return ValidationResult(
        overall_score=overall_score,
        is_valid=overall_score > _cfg("is_valid_above", 50),
        field_issues=field_issues,
        suggestions=suggestions,
        fields=checks,
    )
