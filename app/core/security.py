from __future__ import annotations

import re

from fastapi import Header, HTTPException, status

from app.core.config import settings
from app.core.errors import GO_HOME

USER_ID_RE = re.compile(r"^[A-Za-z0-9_.:@-]{3,128}$")


def _auth_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"category": "authentication", "message": message, "recovery_actions": [GO_HOME]},
    )


def check_api_key(x_api_key: str | None) -> None:
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise _auth_error("Please provide a valid API key.")


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)


def require_user_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    value = (x_user_id or "").strip()
    if not USER_ID_RE.match(value):
        raise _auth_error("Please sign in again; the request is missing a valid user id.")
    return value
