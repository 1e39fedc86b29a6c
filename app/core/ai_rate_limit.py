from __future__ import annotations

import os
import sqlite3
import threading
import time

from fastapi import HTTPException, status

from app.core.config import settings
from app.core.errors import RETRY

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()


class AIRateLimitExceeded(Exception):
    pass


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.ai_rate_limit_db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        _conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_rate_limit_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_key TEXT NOT NULL,
                route_key TEXT NOT NULL,
                created_at REAL NOT NULL
            );
            """
        )
        _conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_ai_rate_limit_lookup
            ON ai_rate_limit_events (user_key, route_key, created_at);
            """
        )
        return _conn


def enforce_ai_rate_limit(user_key: str, route_key: str, limit: int, window_seconds: int = 60) -> None:
    now = time.time()
    cutoff = now - window_seconds
    conn = _get_connection()

    with _conn_lock:
        cursor = conn.cursor()
        cursor.execute("BEGIN IMMEDIATE")
        try:
            cursor.execute("DELETE FROM ai_rate_limit_events WHERE created_at < ?", (cutoff,))
            cursor.execute(
                """
                SELECT COUNT(1)
                FROM ai_rate_limit_events
                WHERE user_key = ? AND route_key = ? AND created_at >= ?
                """,
                (user_key, route_key, cutoff),
            )
            count = int(cursor.fetchone()[0] or 0)
            if count >= limit:
                raise AIRateLimitExceeded

            cursor.execute(
                """
                INSERT INTO ai_rate_limit_events (user_key, route_key, created_at)
                VALUES (?, ?, ?)
                """,
                (user_key, route_key, now),
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def check_ai_rate_limit(user_id: str, route_key: str) -> None:
    limit = int(settings.ai_rate_limit_per_minute)
    if not settings.rate_limit_enabled or limit <= 0:
        return
    try:
        enforce_ai_rate_limit(user_id, route_key, limit)
    except AIRateLimitExceeded:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "category": "rate_limit",
                "message": "Too many AI requests. Please wait a minute before trying again.",
                "recovery_actions": [RETRY],
            },
        ) from None


def clear_ai_rate_limit_events() -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("DELETE FROM ai_rate_limit_events")
        conn.commit()
