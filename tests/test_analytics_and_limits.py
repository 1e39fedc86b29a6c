import dataclasses
import os
import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_TMP_DIR = tempfile.mkdtemp(prefix="coverforge-limits-")
os.environ.setdefault("AI_RATE_LIMIT_DB_PATH", os.path.join(_TMP_DIR, "ai_rate_limit.db"))

from fastapi import HTTPException  # noqa: E402

from app.analytics import db as analytics_db  # noqa: E402
from app.core import ai_rate_limit  # noqa: E402
from app.core.config import settings  # noqa: E402


class AnalyticsDbTests(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        enabled = dataclasses.replace(
            settings,
            analytics_enabled=True,
            analytics_db_path=str(Path(self.tmp_dir.name) / "analytics.db"),
            analytics_retention_days=30,
        )
        self.patcher = patch.object(analytics_db, "settings", enabled)
        self.patcher.start()

    def tearDown(self):
        self.patcher.stop()
        self.tmp_dir.cleanup()

    def test_events_are_counted_per_type_and_user(self):
        analytics_db.log_event("resume_parsed", user_id="user-1", detail={"score": 82})
        analytics_db.log_event("resume_saved", user_id="user-1")
        analytics_db.log_event("resume_saved", user_id="user-2")
        analytics_db.log_ai_run(operation="resume_parse", status="success", latency_ms=120)

        summary = analytics_db.get_summary()

        self.assertEqual(summary["total"], 3)
        self.assertEqual(summary["distinct_users"], 2)
        self.assertEqual(summary["events"]["resume_saved"], 2)
        self.assertEqual(summary["events"]["cover_letter_generated"], 0)
        self.assertEqual(summary["ai_runs"], {"success": 1})

    def test_latest_hides_raw_user_ids(self):
        analytics_db.log_event("cover_letter_exported", user_id="user-1", detail={"bytes": 10})

        latest = analytics_db.get_latest(limit=5)

        self.assertEqual(latest[0]["event_type"], "cover_letter_exported")
        self.assertEqual(latest[0]["user_hash"], analytics_db.hash_user_id("user-1"))
        self.assertNotIn("user-1", str(latest))

    def test_purge_drops_rows_past_retention(self):
        analytics_db.log_event("resume_saved", user_id="user-1")
        with sqlite3.connect(analytics_db._get_db_path()) as conn:
            conn.execute(
                "INSERT INTO analytics_events (created_at, event_type) VALUES (?, ?)",
                ("2000-01-01T00:00:00+00:00", "resume_saved"),
            )
            conn.execute(
                "INSERT INTO ai_runs (created_at, operation, status) VALUES (?, ?, ?)",
                ("2000-01-01T00:00:00+00:00", "cover_letter", "error"),
            )
            conn.commit()

        self.assertEqual(analytics_db.purge_old_records(), {"analytics_events": 1, "ai_runs": 1})
        self.assertEqual(analytics_db.get_summary()["total"], 1)

    def test_disabled_analytics_is_a_no_op(self):
        with patch.object(analytics_db, "settings", dataclasses.replace(settings, analytics_enabled=False)):
            analytics_db.log_event("resume_saved", user_id="user-1")
            self.assertEqual(analytics_db.get_summary(), {"enabled": False})
            self.assertEqual(analytics_db.get_latest(), [])


class AIRateLimitTests(unittest.TestCase):
    def setUp(self):
        ai_rate_limit.clear_ai_rate_limit_events()

    def test_enforce_allows_up_to_limit_per_user_and_route(self):
        for _ in range(2):
            ai_rate_limit.enforce_ai_rate_limit("user-1", "cover_letter", limit=2)

        with self.assertRaises(ai_rate_limit.AIRateLimitExceeded):
            ai_rate_limit.enforce_ai_rate_limit("user-1", "cover_letter", limit=2)
        ai_rate_limit.enforce_ai_rate_limit("user-1", "resume_parse", limit=2)
        ai_rate_limit.enforce_ai_rate_limit("user-2", "cover_letter", limit=2)

    def test_check_raises_429_when_enabled(self):
        limited = dataclasses.replace(settings, rate_limit_enabled=True, ai_rate_limit_per_minute=1)
        with patch.object(ai_rate_limit, "settings", limited):
            ai_rate_limit.check_ai_rate_limit("user-1", "cover_letter")
            with self.assertRaises(HTTPException) as ctx:
                ai_rate_limit.check_ai_rate_limit("user-1", "cover_letter")

        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.detail["recovery_actions"], ["retry"])

    def test_check_is_skipped_when_disabled(self):
        unlimited = dataclasses.replace(settings, rate_limit_enabled=False, ai_rate_limit_per_minute=1)
        with patch.object(ai_rate_limit, "settings", unlimited):
            for _ in range(3):
                ai_rate_limit.check_ai_rate_limit("user-1", "cover_letter")


if __name__ == "__main__":
    unittest.main()
