"""
Eriri Progress Tracking Tests
"""
import asyncio
import unittest

from eriri.models.progress import ProgressKind, SequenceProgress, TextProgress, ViewportRange
from eriri.services.book_parser import parse_text
from eriri.services.progress_service import (ProgressTracker, TrailingThrottle, compute_percent,
                                             create_book_progress, create_sequence_progress,
                                             restore_initial_position)

BOOK = parse_text("第一章 开端\nhello\n第二章 转折\nworld\n")

class TestProgressMapping(unittest.TestCase):
    """Index to progress record mapping"""

    def test_percent_edges(self):
        self.assertEqual(compute_percent(0, 0), 100.0)
        self.assertEqual(compute_percent(0, 1), 100.0)
        self.assertEqual(compute_percent(0, 11), 0.0)
        self.assertEqual(compute_percent(5, 11), 50.0)
        self.assertEqual(compute_percent(10, 11), 100.0)
        self.assertEqual(compute_percent(50, 11), 100.0)

    def test_percent_strictly_increasing(self):
        total = 37
        values = [compute_percent(i, total) for i in range(total)]
        self.assertTrue(all(a < b for a, b in zip(values, values[1:])))

    def test_book_progress_resolves_chapter(self):
        record = create_book_progress(3, BOOK)

        self.assertEqual(record.current_line_index, 3)
        self.assertEqual(record.total_lines, 4)
        self.assertEqual(record.percent, 100.0)
        self.assertEqual(record.current_chapter_title, "第二章 转折")
        self.assertEqual(record.start_char_index, BOOK.line_start_offsets[3])
        self.assertGreater(record.last_read, 0)

    def test_book_progress_clamps_out_of_range(self):
        self.assertEqual(create_book_progress(99, BOOK).current_line_index, 3)

        record = create_book_progress(-4, BOOK)
        self.assertEqual(record.current_line_index, 0)
        self.assertEqual(record.current_chapter_title, "第一章 开端")

    def test_book_progress_without_chapters(self):
        record = create_book_progress(1, parse_text("a\nb\nc\n"))
        self.assertEqual(record.current_chapter_title, "")

    def test_sequence_progress(self):
        record = create_sequence_progress(2, 5)
        self.assertEqual((record.current, record.total, record.percent), (2, 5, 50.0))

        self.assertEqual(create_sequence_progress(9, 5).current, 4)
        self.assertEqual(create_sequence_progress(0, 1).percent, 100.0)

class TestRestoration(unittest.TestCase):
    """Initial position from a saved record"""

    def test_no_saved_progress(self):
        self.assertEqual(restore_initial_position(None, BOOK), 0)
        self.assertEqual(restore_initial_position(None, 10), 0)

    def test_char_offset_wins_over_line_and_percent(self):
        saved = TextProgress(current_line_index=0, total_lines=4, percent=0.0,
                             start_char_index=BOOK.line_start_offsets[2])
        self.assertEqual(restore_initial_position(saved, BOOK), 2)

    def test_char_offset_survives_reparse(self):
        """An offset inside a line restores to that line"""
        saved = TextProgress(current_line_index=0, total_lines=99, percent=0.0,
                             start_char_index=BOOK.line_start_offsets[3] + 2)
        self.assertEqual(restore_initial_position(saved, BOOK), 3)

    def test_line_index_when_length_is_stable(self):
        saved = TextProgress(current_line_index=2, total_lines=4, percent=10.0)
        self.assertEqual(restore_initial_position(saved, BOOK), 2)

    def test_percent_when_length_changed(self):
        saved = TextProgress(current_line_index=1, total_lines=3, percent=100.0)
        self.assertEqual(restore_initial_position(saved, BOOK), 3)

        five_lines = parse_text("a\nb\nc\nd\ne\n")
        saved = TextProgress(current_line_index=0, total_lines=10, percent=50.0)
        self.assertEqual(restore_initial_position(saved, five_lines), 2)

    def test_sequence_restoration(self):
        self.assertEqual(restore_initial_position(SequenceProgress(current=3, total=10, percent=33.3), 10), 3)
        self.assertEqual(restore_initial_position(SequenceProgress(current=3, total=4, percent=100.0), 10), 9)
        self.assertEqual(restore_initial_position(SequenceProgress(current=30, total=31, percent=100.0), 0), 0)

class TestTrailingThrottle(unittest.IsolatedAsyncioTestCase):
    """Trailing only throttle on the event loop"""

    async def test_delivers_only_latest_after_window(self):
        delivered = []
        throttle = TrailingThrottle(delivered.append, window_ms=30)

        for value in range(10): throttle.submit(value)
        self.assertEqual(delivered, [])

        await asyncio.sleep(0.1)
        self.assertEqual(delivered, [9])

    async def test_one_delivery_per_window(self):
        delivered = []
        throttle = TrailingThrottle(delivered.append, window_ms=30)

        throttle.submit(1)
        await asyncio.sleep(0.08)
        throttle.submit(2)
        throttle.submit(3)
        await asyncio.sleep(0.08)

        self.assertEqual(delivered, [1, 3])

    async def test_flush_delivers_synchronously(self):
        delivered = []
        throttle = TrailingThrottle(delivered.append, window_ms=10_000)

        throttle.submit("a")
        throttle.submit("b")
        throttle.flush()

        self.assertEqual(delivered, ["b"])
        self.assertFalse(throttle.pending)

    async def test_cancel_drops_value(self):
        delivered = []
        throttle = TrailingThrottle(delivered.append, window_ms=20)

        throttle.submit("a")
        throttle.cancel()
        await asyncio.sleep(0.06)

        self.assertEqual(delivered, [])

class TestProgressTracker(unittest.IsolatedAsyncioTestCase):
    """Viewport events to sink"""

    def setUp(self):
        self.records = []

    def sink(self, kind, entity_id, record):
        self.records.append((kind, entity_id, record))

    async def test_viewport_storm_yields_one_record(self):
        tracker = ProgressTracker("book-1", ProgressKind.BOOK, self.sink, window_ms=30)
        tracker.load_content(BOOK)

        for index in range(4):
            tracker.on_viewport_changed(ViewportRange(start_index=index, end_index=index + 1))

        await asyncio.sleep(0.1)

        self.assertEqual(len(self.records), 1)
        kind, entity_id, record = self.records[0]
        self.assertEqual((kind, entity_id), (ProgressKind.BOOK, "book-1"))
        self.assertEqual(record.current_line_index, 3)
        self.assertEqual(record.current_chapter_title, "第二章 转折")

    async def test_close_delivers_last_record_and_cancels_timer(self):
        """The final update is delivered on close, and no stale callback fires later"""
        tracker = ProgressTracker("comic-1", ProgressKind.COMIC, self.sink, window_ms=30)
        tracker.load_content(10)

        tracker.on_page_changed(4)
        tracker.on_page_changed(6)
        tracker.close()

        self.assertEqual(len(self.records), 1)
        self.assertEqual(self.records[0][2].current, 6)

        tracker.on_page_changed(8)
        await asyncio.sleep(0.1)
        self.assertEqual(len(self.records), 1)

    async def test_close_without_events_delivers_nothing(self):
        tracker = ProgressTracker("comic-1", ProgressKind.COMIC, self.sink)
        tracker.load_content(10)
        tracker.close()
        tracker.close()

        self.assertEqual(self.records, [])

    async def test_restoration_runs_once_per_load(self):
        tracker = ProgressTracker("book-1", ProgressKind.BOOK, self.sink)
        tracker.load_content(BOOK)
        saved = TextProgress(current_line_index=2, total_lines=4, percent=66.0)

        self.assertEqual(tracker.initial_position(saved), 2)
        self.assertIsNone(tracker.initial_position(saved))

        tracker.load_content(BOOK)
        self.assertEqual(tracker.initial_position(saved), 2)

    async def test_content_swap_flushes_pending(self):
        tracker = ProgressTracker("comic-1", ProgressKind.COMIC, self.sink, window_ms=10_000)
        tracker.load_content(10)
        tracker.on_page_changed(7)

        tracker.load_content(20)

        self.assertEqual(len(self.records), 1)
        self.assertEqual(self.records[0][2].total, 10)
        tracker.close()

    async def test_book_events_before_content_are_ignored(self):
        tracker = ProgressTracker("book-1", ProgressKind.BOOK, self.sink)
        tracker.on_page_changed(3)
        tracker.close()

        self.assertEqual(self.records, [])

    async def test_discard_drops_pending_record(self):
        """A discarded tracker delivers nothing, now or later"""
        tracker = ProgressTracker("comic-1", ProgressKind.COMIC, self.sink, window_ms=20)
        tracker.load_content(10)
        tracker.on_page_changed(5)

        tracker.discard()
        tracker.close()
        tracker.on_page_changed(6)
        await asyncio.sleep(0.06)

        self.assertEqual(self.records, [])
