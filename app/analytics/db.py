from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

EVENT_TYPES = (
    "resume_parsed",
    "resume_saved",
    "cover_letter_generated",
    "cover_letter_exported",
    "custom_prompt_saved",
    "error",
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


def hash_user_id(user_id: str | None) -> str | None:
    if not user_id:
        return None
    return hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:16]


def init_db() -> None:
    if not settings.analytics_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS analytics_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                event_type TEXT NOT NULL,
                user_hash TEXT,
                detail_json TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_analytics_events_created_at
            ON analytics_events (created_at)
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                operation TEXT NOT NULL,
                status TEXT NOT NULL,
                error_category TEXT,
                latency_ms INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_ai_runs_created_at
            ON ai_runs (created_at)
            """
        )
        conn.commit()


def log_event(event_type: str, user_id: str | None = None, detail: dict[str, Any] | None = None) -> None:
    if not settings.analytics_enabled:
        return
    try:
        init_db()
        with sqlite3.connect(_get_db_path()) as conn:
            conn.execute(
                """
                INSERT INTO analytics_events (created_at, event_type, user_hash, detail_json)
                VALUES (?, ?, ?, ?)
                """,
                (
                    _utc_now(),
                    event_type,
                    hash_user_id(user_id),
                    json.dumps(detail, ensure_ascii=False) if detail else None,
                ),
            )
            conn.commit()
    except Exception:  # pragma: no cover - analytics must not break requests
        logger.debug("analytics_event_logging_failed event=%s", event_type, exc_info=True)


def log_ai_run(
    *,
    operation: str,
    status: str,
    error_category: str | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.analytics_enabled:
        return
    try:
        init_db()
        with sqlite3.connect(_get_db_path()) as conn:
            conn.execute(
                """
                INSERT INTO ai_runs (created_at, operation, status, error_category, latency_ms)
                VALUES (?, ?, ?, ?, ?)
                """,
                (_utc_now(), operation, status, error_category, latency_ms),
            )
            conn.commit()
    except Exception:  # pragma: no cover - analytics must not break AI responses
        logger.debug("ai_run_logging_failed operation=%s", operation, exc_info=True)


def purge_old_records() -> dict[str, int]:
    if not settings.analytics_enabled:
        return {"analytics_events": 0, "ai_runs": 0}

    init_db()
    retention = f"-{max(1, int(settings.analytics_retention_days))} days"
    deleted = {"analytics_events": 0, "ai_runs": 0}
    with sqlite3.connect(_get_db_path()) as conn:
        for table in deleted:
            cur = conn.execute(
                f"DELETE FROM {table} WHERE created_at < strftime('%Y-%m-%dT%H:%M:%S', 'now', ?)",
                (retention,),
            )
            deleted[table] = int(cur.rowcount or 0)
        conn.commit()
    return deleted


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    init_db()
    with sqlite3.connect(_get_db_path()) as conn:
        total = conn.execute("SELECT COUNT(*) FROM analytics_events").fetchone()[0]
        rows = conn.execute(
            "SELECT event_type, COUNT(*) FROM analytics_events GROUP BY event_type"
        ).fetchall()
        users = conn.execute(
            "SELECT COUNT(DISTINCT user_hash) FROM analytics_events WHERE user_hash IS NOT NULL"
        ).fetchone()[0]
        ai_rows = conn.execute("SELECT status, COUNT(*) FROM ai_runs GROUP BY status").fetchall()
    by_type = {event_type: 0 for event_type in EVENT_TYPES}
    by_type.update({event_type: int(count) for event_type, count in rows})
    return {
        "enabled": True,
        "total": int(total),
        "distinct_users": int(users),
        "events": by_type,
        "ai_runs": {status: int(count) for status, count in ai_rows},
    }


def get_latest(limit: int = 20) -> list[dict[str, Any]]:
    if not settings.analytics_enabled:
        return []
    init_db()
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            """
            SELECT created_at, event_type, user_hash, detail_json
            FROM analytics_events
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = cur.fetchall()
        return [_row_to_dict(cur, row) for row in rows]
