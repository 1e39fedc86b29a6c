from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.core.errors import InvalidInput

DEFAULT_MAX_TEXT_LENGTH = 10000

SUSPICIOUS_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
)


@dataclass(frozen=True)
class TextCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    sanitized_value: str = ""


def check_text_content(text: str | None, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> TextCheck:
    value = text or ""
    errors: list[str] = []

    if not value.strip():
        errors.append("Content is required")
    elif len(value) > max_length:
        errors.append(f"Content is too long. Maximum {max_length} characters allowed")

    if any(pattern.search(value) for pattern in SUSPICIOUS_PATTERNS):
        errors.append("Content contains potentially harmful elements")

    return TextCheck(is_valid=not errors, errors=errors, sanitized_value=value.strip())


def require_text_content(text: str | None, *, field_label: str, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    result = check_text_content(text, max_length=max_length)
    if not result.is_valid:
        raise InvalidInput(f"{field_label}: {'; '.join(result.errors)}", errors=result.errors)
    return result.sanitized_value
