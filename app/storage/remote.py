from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

from supabase import create_client

from app.core.errors import ConfigurationError

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RemoteUserStore(Protocol):
    """Per-user document store. Writes merge at the top-level property."""

    def create_or_update_user_record(self, user_id: str, patch: dict[str, Any]) -> None: ...

    def read_user_record(self, user_id: str) -> dict[str, Any] | None: ...


class SqliteUserStore:
    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS user_records (
                    user_id TEXT PRIMARY KEY,
                    record_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            self._conn = conn
            return conn

    def create_or_update_user_record(self, user_id: str, patch: dict[str, Any]) -> None:
        conn = self._get_connection()
        now_iso = _utc_now_iso()
        with self._lock:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                row = cursor.execute(
                    "SELECT record_json FROM user_records WHERE user_id = ?", (user_id,)
                ).fetchone()
                record = json.loads(row[0]) if row and row[0] else {}
                record.update(patch)
                cursor.execute(
                    """
                    INSERT INTO user_records (user_id, record_json, created_at, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        record_json = excluded.record_json,
                        updated_at = excluded.updated_at
                    """,
                    (user_id, json.dumps(record, ensure_ascii=False), now_iso, now_iso),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def read_user_record(self, user_id: str) -> dict[str, Any] | None:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute(
                "SELECT record_json FROM user_records WHERE user_id = ?", (user_id,)
            ).fetchone()
        if not row:
            return None
        record = json.loads(row[0]) if row[0] else {}
        return record if isinstance(record, dict) else None

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


class SupabaseUserStore:
    """Rows are ``(user_id, record jsonb, updated_at)``; the merge happens client side."""

    def __init__(self, url: str, key: str, table: str = "user_records", client: Any = None):
        self._table = table
        self._client = client if client is not None else create_client(url, key)

    def read_user_record(self, user_id: str) -> dict[str, Any] | None:
        result = self._client.table(self._table).select("*").eq("user_id", user_id).execute()
        if not result.data:
            return None
        record = result.data[0].get("record") or {}
        return record if isinstance(record, dict) else None

    def create_or_update_user_record(self, user_id: str, patch: dict[str, Any]) -> None:
        record = self.read_user_record(user_id) or {}
        record.update(patch)
        (
            self._client.table(self._table)
            .upsert(
                {"user_id": user_id, "record": record, "updated_at": _utc_now_iso()},
                on_conflict="user_id",
            )
            .execute()
        )


def build_remote_store(config: "Settings") -> RemoteUserStore | None:
    backend = config.remote_store_backend
    if backend == "none":
        logger.info("remote_store_disabled")
        return None
    if backend == "supabase":
        if not config.supabase_url or not config.supabase_key:
            raise ConfigurationError(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_KEY in the environment."
            )
        return SupabaseUserStore(config.supabase_url, config.supabase_key, config.supabase_table)
    return SqliteUserStore(config.remote_store_db_path)
