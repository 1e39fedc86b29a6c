from __future__ import annotations

from typing import Any

from app.core.config import settings

EXPOSED_HEADERS = ("Content-Disposition",)


def cors_allowed_origins() -> list[str]:
    return list(settings.cors_allowed_origins)


def cors_allow_origin_regex() -> str | None:
    regex = (settings.cors_allow_origin_regex or "").strip()
    return regex or None


def cors_options() -> dict[str, Any]:
    """Keyword arguments for CORSMiddleware; PDF downloads need Content-Disposition exposed."""
    return {
        "allow_origins": cors_allowed_origins(),
        "allow_origin_regex": cors_allow_origin_regex(),
        "allow_credentials": settings.cors_allow_credentials,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
        "expose_headers": list(EXPOSED_HEADERS),
    }
