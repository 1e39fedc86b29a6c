from __future__ import annotations

import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Protocol


class StorageQuotaExceeded(OSError):
    pass


class KeyValueStorage(Protocol):
    """String-to-string storage with the shape of the browser's localStorage."""

    def keys(self) -> list[str]: ...

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


def utf8_size(value: str) -> int:
    return len(value.encode("utf-8"))


class MemoryKeyValueStorage:
    def __init__(self, quota_bytes: int | None = None):
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes
        self._lock = threading.Lock()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            if self._quota_bytes is not None:
                current = sum(utf8_size(v) for k, v in self._items.items() if k != key)
                if current + utf8_size(value) > self._quota_bytes:
                    raise StorageQuotaExceeded(
                        f"Storage quota of {self._quota_bytes} bytes exceeded while writing '{key}'."
                    )
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class SqliteKeyValueStorage:
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
                CREATE TABLE IF NOT EXISTS kv_items (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            self._conn = conn
            return conn

    def keys(self) -> list[str]:
        conn = self._get_connection()
        with self._lock:
            rows = conn.execute("SELECT key FROM kv_items ORDER BY key").fetchall()
        return [row[0] for row in rows]

    def get_item(self, key: str) -> str | None:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute("SELECT value FROM kv_items WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._get_connection()
        now_iso = datetime.now(timezone.utc).isoformat()
        with self._lock:
            conn.execute(
                """
                INSERT INTO kv_items (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now_iso),
            )

    def remove_item(self, key: str) -> None:
        conn = self._get_connection()
        with self._lock:
            conn.execute("DELETE FROM kv_items WHERE key = ?", (key,))

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
