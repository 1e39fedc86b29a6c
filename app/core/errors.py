from __future__ import annotations

from enum import Enum
from typing import Callable

RETRY = "retry"
RE_UPLOAD = "re_upload"
GO_HOME = "go_home"
CHECK_SETTINGS = "check_settings"


class ErrorCategory(str, Enum):
    AUTH_QUOTA = "auth_quota"
    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    UNKNOWN = "unknown"


class ConfigurationError(RuntimeError):
    """Missing credentials or an unusable setting, detected at call time."""


class UploadRejected(ValueError):
    def __init__(self, message: str, *, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidInput(ValueError):
    def __init__(self, message: str, *, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


class RecordNotFound(LookupError):
    def __init__(self, message: str, *, recovery_actions: tuple[str, ...] = (RE_UPLOAD, GO_HOME)):
        super().__init__(message)
        self.recovery_actions = recovery_actions


def _contains_any(*markers: str) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        return any(marker in text for marker in markers)

    return predicate


# First match wins. "limit" sits in the auth/quota rule, so vendor messages such as
# "rate limit exceeded" classify as auth/quota rather than rate_limit.
ERROR_RULES: tuple[tuple[Callable[[str], bool], ErrorCategory], ...] = (
    (
        _contains_any(
            "api key",
            "api_key_invalid",
            "invalid api key",
            "authentication",
            "unauthorized",
            "forbidden",
            "quota",
            "limit",
            "generativelanguage.googleapis.com",
            "google generative ai",
        ),
        ErrorCategory.AUTH_QUOTA,
    ),
    (_contains_any("network", "fetch", "connection", "timeout"), ErrorCategory.NETWORK),
    (_contains_any("rate", "quota", "too many requests"), ErrorCategory.RATE_LIMIT),
)

_UPSTREAM_MESSAGES = {
    ErrorCategory.AUTH_QUOTA: (
        "The AI service rejected the request (authentication or quota). "
        "Please try again later or contact support."
    ),
    ErrorCategory.NETWORK: (
        "Network connection issue with the AI service. "
        "Please check your connection and try again."
    ),
    ErrorCategory.RATE_LIMIT: (
        "The AI service rate limit was exceeded. Please wait a few minutes before trying again."
    ),
    ErrorCategory.UNKNOWN: "The AI service failed unexpectedly. Please try again.",
}


def classify_error_message(message: str | None) -> ErrorCategory:
    text = (message or "").lower()
    for predicate, category in ERROR_RULES:
        if predicate(text):
            return category
    return ErrorCategory.UNKNOWN


def describe_exception(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


def classify_exception(exc: BaseException) -> ErrorCategory:
    # The message alone decides; the type name only appears in logs.
    return classify_error_message(str(exc))


def upstream_message(category: ErrorCategory) -> str:
    return _UPSTREAM_MESSAGES[category]


class UpstreamServiceError(RuntimeError):
    def __init__(self, category: ErrorCategory, message: str | None = None):
        super().__init__(message or upstream_message(category))
        self.category = category
        self.recovery_actions: tuple[str, ...] = (RETRY, GO_HOME)

    @classmethod
    def from_exception(cls, exc: BaseException, *, message: str | None = None) -> "UpstreamServiceError":
        return cls(classify_exception(exc), message)


_CONFIGURATION_MARKERS = (
    "configuration",
    "not configured",
    "environment variable",
    "api_key is missing",
    "api key is missing",
)


def describe_crash(message: str | None) -> str:
    """Classify an unhandled error text as 'configuration' or 'generic'."""
    text = (message or "").lower()
    if any(marker in text for marker in _CONFIGURATION_MARKERS):
        return "configuration"
    return "generic"
