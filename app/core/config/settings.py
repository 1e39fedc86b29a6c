from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    ai_rate_limit_per_minute: int
    ai_rate_limit_db_path: str
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    cache_db_path: str
    cache_ttl_days: int
    cache_sweep_interval_s: float
    remote_store_backend: str
    remote_store_db_path: str
    supabase_url: str | None
    supabase_key: str | None
    supabase_table: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    max_upload_mb: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    ai_rate_limit_per_minute=_get_env_int("AI_RATE_LIMIT_PER_MINUTE", 10),
    ai_rate_limit_db_path=_get_env("AI_RATE_LIMIT_DB_PATH", "data/ai_rate_limit.db") or "data/ai_rate_limit.db",
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    cache_db_path=_get_env("CACHE_DB_PATH", "data/device_cache.db") or "data/device_cache.db",
    cache_ttl_days=_get_env_int("CACHE_TTL_DAYS", 7),
    cache_sweep_interval_s=_get_env_float("CACHE_SWEEP_INTERVAL_S", 3600.0),
    remote_store_backend=(_get_env("REMOTE_STORE_BACKEND", "sqlite") or "sqlite").strip().lower(),
    remote_store_db_path=_get_env("REMOTE_STORE_DB_PATH", "data/user_records.db") or "data/user_records.db",
    supabase_url=_get_env("SUPABASE_URL"),
    supabase_key=_get_env("SUPABASE_KEY"),
    supabase_table=_get_env("SUPABASE_TABLE", "user_records") or "user_records",
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
    max_upload_mb=_get_env_int("MAX_UPLOAD_MB", 10),
)

if settings.remote_store_backend not in {"sqlite", "supabase", "none"}:
    raise RuntimeError("REMOTE_STORE_BACKEND must be one of 'sqlite', 'supabase' or 'none'.")
