"""
Eriri Debounced Storage and Progress Store Tests
"""
import asyncio
import os
import shutil
import tempfile
import threading
import time
import unittest

from eriri.core.exceptions import StorageException
from eriri.db.sqlite import create_session_factory, create_sqlite_engine, initialise_db
from eriri.models.progress import ProgressKind, SequenceProgress, TextProgress
from eriri.services.progress_store import ProgressStore
from eriri.services.storage_service import DebouncedStorage, SQLiteBlobBackend, StorageState

class MemoryBackend:
    """Blob backend recording every call"""

    def __init__(self, write_delay: float = 0.0):
        self.data = {}
        self.writes = []
        self.deletes = []
        self.fail_writes = False
        self.write_delay = write_delay
        # per-write delays consumed in order before falling back to write_delay
        self.write_delays = []
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def read_blob(self, key):
        with self.lock: return self.data.get(key)

    def write_blob(self, key, data):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            delay = self.write_delays.pop(0) if self.write_delays else self.write_delay
        try:
            if delay: time.sleep(delay)
            if self.fail_writes: raise StorageException("disk full")
            with self.lock:
                self.writes.append((key, data))
                self.data[key] = data
        finally:
            with self.lock: self.active -= 1

    def delete_blob(self, key):
        with self.lock:
            self.deletes.append(key)
            self.data.pop(key, None)

class TestDebouncedStorage(unittest.IsolatedAsyncioTestCase):
    """Coalescing writes and read-after-write"""

    def setUp(self):
        self.backend = MemoryBackend()
        self.storage = DebouncedStorage(self.backend, delay_ms=30)

    async def test_coalesces_to_last_value(self):
        """Two sets inside the window give one write with the second value"""
        self.storage.set_item("k", "v1")
        self.storage.set_item("k", "v2")
        self.assertEqual(self.backend.writes, [])

        await asyncio.sleep(0.12)

        self.assertEqual(self.backend.writes, [("k", "v2")])
        self.assertEqual(self.storage.state, StorageState.IDLE)

    async def test_settled_waits_for_timer_write(self):
        self.storage.set_item("k", "v1")
        self.storage.set_item("k", "v2")
        self.assertEqual(self.storage.state, StorageState.PENDING)

        await self.storage.settled()

        self.assertEqual(self.backend.writes, [("k", "v2")])

    async def test_read_after_write_before_timer(self):
        self.storage.set_item("k", "v")

        self.assertEqual(await self.storage.get_item("k"), "v")
        self.assertEqual(self.backend.writes, [])

    async def test_get_missing_and_empty(self):
        self.backend.data["empty"] = ""

        self.assertIsNone(await self.storage.get_item("missing"))
        self.assertIsNone(await self.storage.get_item("empty"))

    async def test_get_waits_for_running_write(self):
        backend = MemoryBackend(write_delay=0.05)
        storage = DebouncedStorage(backend, delay_ms=0)

        storage.set_item("k", "v")
        await asyncio.sleep(0.01)
        self.assertEqual(storage.state, StorageState.FLUSHING)

        self.assertEqual(await storage.get_item("k"), "v")
        self.assertEqual(backend.writes, [("k", "v")])

    async def test_teardown_flush_is_synchronous(self):
        """flush_sync writes the latest value with no timer wait"""
        storage = DebouncedStorage(self.backend, delay_ms=10_000)
        storage.set_item("k", "v1")
        storage.set_item("k", "v2")

        storage.flush_sync()

        self.assertEqual(self.backend.writes, [("k", "v2")])
        self.assertFalse(storage.has_pending)
        self.assertEqual(storage.state, StorageState.IDLE)

        storage.flush_sync()
        self.assertEqual(len(self.backend.writes), 1)

    async def test_remove_flushes_pending_before_delete(self):
        self.storage.set_item("k", "v")

        await self.storage.remove_item("k")

        self.assertEqual(self.backend.writes, [("k", "v")])
        self.assertEqual(self.backend.deletes, ["k"])
        self.assertIsNone(await self.storage.get_item("k"))

        await asyncio.sleep(0.08)
        self.assertNotIn("k", self.backend.data)

    async def test_write_failure_does_not_block(self):
        """A failed write is dropped and the store stays usable"""
        self.backend.fail_writes = True
        self.storage.set_item("k", "lost")

        await asyncio.wait_for(self.storage.flush(), timeout=1)

        self.assertEqual(self.storage.state, StorageState.IDLE)
        self.assertFalse(self.storage.has_pending)
        self.assertIsNone(await asyncio.wait_for(self.storage.get_item("k"), timeout=1))

        self.backend.fail_writes = False
        self.storage.set_item("k", "kept")
        await asyncio.wait_for(self.storage.settled(), timeout=1)

        self.assertEqual(self.backend.writes, [("k", "kept")])

    async def test_different_key_is_not_overwritten(self):
        self.storage.set_item("a", "1")
        self.storage.set_item("b", "2")

        await self.storage.flush()

        self.assertIn(("a", "1"), self.backend.writes)
        self.assertIn(("b", "2"), self.backend.writes)

    async def test_slow_write_is_not_overtaken(self):
        """A newer value waits for the running write and lands last"""
        self.backend.write_delays = [0.3]
        self.storage.set_item("k", "v1")
        await asyncio.sleep(0.05)
        self.assertEqual(self.storage.state, StorageState.FLUSHING)

        self.storage.set_item("k", "v2")
        await self.storage.flush()
        await asyncio.sleep(0.05)

        self.assertEqual(self.backend.writes, [("k", "v1"), ("k", "v2")])
        self.assertEqual(self.backend.data["k"], "v2")
        self.assertEqual(self.backend.max_active, 1)
        self.assertEqual(await self.storage.get_item("k"), "v2")

    async def test_writes_never_overlap(self):
        storage = DebouncedStorage(self.backend, delay_ms=0)
        self.backend.write_delays = [0.1, 0.02, 0.02]

        storage.set_item("a", "1")
        await asyncio.sleep(0.01)
        storage.set_item("b", "2")
        storage.set_item("a", "3")

        await storage.flush()

        self.assertEqual(self.backend.writes, [("a", "1"), ("b", "2"), ("a", "3")])
        self.assertEqual(self.backend.max_active, 1)
        self.assertEqual(storage.state, StorageState.IDLE)

class TestSQLiteBlobBackend(unittest.TestCase):
    """Blob primitives on SQLite"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.engine = create_sqlite_engine(os.path.join(self.test_dir, "blobs.db"))
        initialise_db(bind=self.engine)
        self.backend = SQLiteBlobBackend(create_session_factory(self.engine))

    def tearDown(self):
        self.engine.dispose()
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_write_read_delete(self):
        self.assertIsNone(self.backend.read_blob("k"))

        self.backend.write_blob("k", "one")
        self.backend.write_blob("k", "two")
        self.assertEqual(self.backend.read_blob("k"), "two")

        self.backend.delete_blob("k")
        self.assertIsNone(self.backend.read_blob("k"))

class TestProgressStore(unittest.IsolatedAsyncioTestCase):
    """Progress records persisted through the debounced storage"""

    def setUp(self):
        self.backend = MemoryBackend()
        self.storage = DebouncedStorage(self.backend, delay_ms=10)
        self.store = ProgressStore(self.storage, storage_key="progress")

    async def test_load_without_stored_document(self):
        state = await self.store.load()

        self.assertEqual(state.books, {})
        self.assertTrue(self.store.loaded)

    async def test_load_corrupt_document(self):
        self.backend.data["progress"] = "{not json"

        state = await self.store.load()

        self.assertEqual(state.comics, {})

    async def test_round_trip_through_storage(self):
        self.store.update_book_progress("b1", TextProgress(current_line_index=3, total_lines=4, percent=100.0,
                                                           current_chapter_title="第二章 转折", start_char_index=20))
        self.store.update_sequence_progress(ProgressKind.COMIC, "c1", SequenceProgress(current=1, total=3, percent=50.0))
        await self.storage.flush()

        self.assertEqual(len(self.backend.writes), 1)

        reloaded = ProgressStore(DebouncedStorage(self.backend, delay_ms=10), storage_key="progress")
        await reloaded.load()

        self.assertEqual(reloaded.get_book_progress("b1").current_chapter_title, "第二章 转折")
        self.assertEqual(reloaded.get_sequence_progress(ProgressKind.COMIC, "c1").current, 1)

    async def test_last_write_wins(self):
        self.store.update(ProgressKind.VIDEO, "v1", SequenceProgress(current=1, total=10, percent=11.1))
        self.store.update(ProgressKind.VIDEO, "v1", SequenceProgress(current=5, total=10, percent=55.5))

        self.assertEqual(self.store.get(ProgressKind.VIDEO, "v1").current, 5)
        self.assertEqual(await self.storage.get_item("progress"), self.store.state.model_dump_json())

    async def test_remove_and_clear(self):
        self.store.update(ProgressKind.COMIC, "c1", SequenceProgress(current=1, total=3, percent=50.0))

        self.assertTrue(self.store.remove(ProgressKind.COMIC, "c1"))
        self.assertFalse(self.store.remove(ProgressKind.COMIC, "c1"))
        self.assertIsNone(self.store.get(ProgressKind.COMIC, "c1"))

        await self.store.clear()
        self.assertEqual(self.backend.deletes, ["progress"])
        self.assertIsNone(await self.storage.get_item("progress"))

    async def test_record_kind_is_checked(self):
        with self.assertRaises(ValueError):
            self.store.update(ProgressKind.BOOK, "b1", SequenceProgress(current=0, total=1, percent=100.0))
        with self.assertRaises(ValueError):
            self.store.update(ProgressKind.COMIC, "c1", TextProgress())
