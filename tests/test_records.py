import asyncio
import os
import sys
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("ANALYTICS_ENABLED", "0")

from app.core.clock import ManualClock  # noqa: E402
from app.core.errors import ConfigurationError, RecordNotFound  # noqa: E402
from app.schemas.resume import ResumeRecord  # noqa: E402
from app.services.records import LOCAL_ONLY_NOTICE, NOT_CONFIGURED_NOTICE, RecordService  # noqa: E402
from app.storage.device_cache import DeviceCache, StorageKeys, user_key  # noqa: E402
from app.storage.inflight import InFlightRegistry  # noqa: E402
from app.storage.kv import MemoryKeyValueStorage  # noqa: E402
from app.storage.remote import SqliteUserStore, SupabaseUserStore, build_remote_store  # noqa: E402


class FailingRemote:
    def __init__(self):
        self.writes = 0

    def create_or_update_user_record(self, user_id, patch):
        self.writes += 1
        raise ConnectionError("remote store unreachable")

    def read_user_record(self, user_id):
        raise ConnectionError("remote store unreachable")


class CountingRemote:
    def __init__(self, record=None):
        self.record = record
        self.reads = 0

    def create_or_update_user_record(self, user_id, patch):
        self.record = {**(self.record or {}), **patch}

    def read_user_record(self, user_id):
        self.reads += 1
        return self.record


class FakeSupabaseTable:
    def __init__(self, rows):
        self._rows = rows
        self._filter = None
        self._upsert = None

    def select(self, columns):
        return self

    def eq(self, column, value):
        self._filter = (column, value)
        return self

    def upsert(self, row, on_conflict=None):
        self._upsert = row
        return self

    def execute(self):
        if self._upsert is not None:
            self._rows[self._upsert["user_id"]] = self._upsert
            return SimpleNamespace(data=[self._upsert])
        column, value = self._filter
        return SimpleNamespace(data=[row for row in self._rows.values() if row.get(column) == value])


class FakeSupabaseClient:
    def __init__(self):
        self.rows = {}

    def table(self, name):
        return FakeSupabaseTable(self.rows)


class RecordServiceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.storage = MemoryKeyValueStorage()
        self.cache = DeviceCache(self.storage, clock=self.clock)
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.remote = SqliteUserStore(str(Path(self.tmp_dir.name) / "records.db"))
        self.service = RecordService(self.remote, self.cache)
        self.resume = ResumeRecord(name="Jane Doe", email="jane@example.com", skills=["Python"])

    def tearDown(self):
        self.remote.close()
        self.tmp_dir.cleanup()

    async def test_save_writes_remote_and_cache(self):
        outcome = await self.service.save_resume("user-1", self.resume)

        self.assertTrue(outcome.synced)
        self.assertIsNone(outcome.notice)
        record = self.remote.read_user_record("user-1")
        self.assertEqual(record["resume"]["name"], "Jane Doe")
        self.assertIn("last_resume_update", record)
        self.assertEqual(self.cache.retrieve(user_key(StorageKeys.RESUME, "user-1"))["email"], "jane@example.com")

    async def test_remote_failure_saves_locally_with_notice(self):
        remote = FailingRemote()
        service = RecordService(remote, self.cache)

        outcome = await service.save_resume("user-1", self.resume)

        self.assertEqual(remote.writes, 1)
        self.assertFalse(outcome.synced)
        self.assertEqual(outcome.notice, LOCAL_ONLY_NOTICE)
        self.assertEqual(await service.load_resume("user-1"), self.resume)

    async def test_without_remote_store_saves_on_device_only(self):
        service = RecordService(None, self.cache)

        outcome = await service.save_resume("user-1", self.resume)

        self.assertEqual(outcome.notice, NOT_CONFIGURED_NOTICE)
        self.assertFalse(service.remote_configured)
        self.assertEqual(await service.load_resume("user-1"), self.resume)

    async def test_expired_cache_reads_through_to_remote_and_repopulates(self):
        await self.service.save_resume("user-1", self.resume)
        self.clock.advance(days=8)

        self.assertEqual(await self.service.load_resume("user-1"), self.resume)
        self.assertTrue(self.cache.exists(user_key(StorageKeys.RESUME, "user-1")))

    async def test_missing_records_load_as_none(self):
        self.assertIsNone(await self.service.load_resume("nobody"))
        self.assertIsNone(await self.service.load_application("nobody"))
        self.assertEqual(await self.service.list_custom_prompts("nobody"), [])

    async def test_remote_read_failure_is_a_miss(self):
        service = RecordService(FailingRemote(), self.cache)
        self.assertIsNone(await service.load_resume("user-1"))

    async def test_concurrent_loads_share_one_remote_read(self):
        remote = CountingRemote({"resume": self.resume.model_dump(mode="json")})
        service = RecordService(remote, self.cache, InFlightRegistry())

        first, second = await asyncio.gather(service.load_resume("user-1"), service.load_resume("user-1"))

        self.assertEqual(first, self.resume)
        self.assertEqual(second, self.resume)
        self.assertEqual(remote.reads, 1)

    async def test_invalid_stored_record_loads_as_none(self):
        self.cache.store(user_key(StorageKeys.RESUME, "user-1"), {"skills": "not a list"})
        self.assertIsNone(await RecordService(None, self.cache).load_resume("user-1"))

    async def test_custom_prompt_lifecycle(self):
        created, outcome = await self.service.save_custom_prompt("user-1", "Short", "Be brief. {RESUME_DATA}")
        self.assertTrue(outcome.synced)
        self.assertTrue(created.id.startswith("prompt_"))

        second, _ = await self.service.save_custom_prompt("user-1", "Formal", "Be formal.")
        updated, _ = await self.service.save_custom_prompt("user-1", "Short v2", "Be briefer.", prompt_id=created.id)

        self.assertEqual(updated.created_at, created.created_at)
        prompts = await self.service.list_custom_prompts("user-1")
        self.assertEqual(len(prompts), 2)
        self.assertEqual((await self.service.get_custom_prompt("user-1", created.id)).name, "Short v2")

        await self.service.delete_custom_prompt("user-1", second.id)
        self.assertEqual([prompt.id for prompt in await self.service.list_custom_prompts("user-1")], [created.id])

    async def test_unknown_prompt_ids_raise(self):
        with self.assertRaises(RecordNotFound):
            await self.service.save_custom_prompt("user-1", "Name", "Text", prompt_id="prompt_missing")
        with self.assertRaises(RecordNotFound):
            await self.service.delete_custom_prompt("user-1", "prompt_missing")


class RemoteStoreTests(unittest.TestCase):
    def test_sqlite_store_merges_top_level_properties(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            store = SqliteUserStore(str(Path(tmp_dir) / "nested" / "records.db"))
            try:
                store.create_or_update_user_record("user-1", {"resume": {"name": "Jane"}})
                store.create_or_update_user_record("user-1", {"application": {"company": "Acme"}})

                self.assertEqual(
                    store.read_user_record("user-1"),
                    {"resume": {"name": "Jane"}, "application": {"company": "Acme"}},
                )
                self.assertIsNone(store.read_user_record("user-2"))
            finally:
                store.close()

    def test_supabase_store_upserts_merged_record(self):
        client = FakeSupabaseClient()
        store = SupabaseUserStore("https://example.supabase.co", "key", client=client)

        store.create_or_update_user_record("user-1", {"resume": {"name": "Jane"}})
        store.create_or_update_user_record("user-1", {"custom_prompts": []})

        self.assertEqual(store.read_user_record("user-1"), {"resume": {"name": "Jane"}, "custom_prompts": []})
        self.assertIsNone(store.read_user_record("user-2"))

    def test_build_remote_store_requires_supabase_credentials(self):
        config = SimpleNamespace(remote_store_backend="supabase", supabase_url=None, supabase_key=None)
        with self.assertRaises(ConfigurationError):
            build_remote_store(config)
        self.assertIsNone(build_remote_store(SimpleNamespace(remote_store_backend="none")))


if __name__ == "__main__":
    unittest.main()
