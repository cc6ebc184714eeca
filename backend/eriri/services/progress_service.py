"""
Eriri Progress Service - viewport to progress mapping and throttled delivery
"""
import asyncio
import logging
import time
from typing import Callable, Generic, Optional, TypeVar, Union
from eriri.core.config import settings
from eriri.models.book import TextContent
from eriri.models.progress import ProgressKind, ProgressRecord, SequenceProgress, TextProgress, ViewportRange
from eriri.services.book_parser import find_chapter_at_line, find_line_index

T = TypeVar("T")

logger = logging.getLogger(__name__)

ProgressSink = Callable[[ProgressKind, str, ProgressRecord], None]

def now_ms() -> int:
    return int(time.time() * 1000)

def clamp_index(index: int, total: int) -> int:
    """Clamp index into [0, total - 1]; empty content pins to 0"""
    return max(0, min(index, total - 1))

def compute_percent(current: int, total: int) -> float:
    """
    Reading progress percentage for a position
    Args:
        current: Zero based position
        total: Number of positions
    Returns:
        100 for content with at most one position, else current / (total - 1) * 100 clamped to [0, 100]
    """
    if total <= 1: return 100.0
    return min(100.0, max(0.0, current / (total - 1) * 100.0))

def index_from_percent(percent: float, total: int) -> int:
    if total <= 1: return 0
    return clamp_index(round(percent / 100.0 * (total - 1)), total)

def create_book_progress(line_index: int, content: TextContent) -> TextProgress:
    total = content.total_lines
    safe_index = clamp_index(line_index, total)
    chapter = find_chapter_at_line(content.chapters, safe_index)

    return TextProgress(
        current_line_index=safe_index,
        total_lines=total,
        percent=compute_percent(safe_index, total),
        current_chapter_title=chapter.title if chapter else "",
        last_read=now_ms(),
        start_char_index=content.line_start_offsets[safe_index] if total else None,
    )

def create_sequence_progress(index: int, total: int) -> SequenceProgress:
    safe_index = clamp_index(index, total)
    return SequenceProgress(
        current=safe_index,
        total=total,
        percent=compute_percent(safe_index, total),
        last_read=now_ms(),
    )

def restore_initial_position(saved: Optional[ProgressRecord], content: Union[TextContent, int]) -> int:
    """
    Position to open content at from a saved record
    Args:
        saved: Stored progress record, if any
        content: Parsed text, or the page/frame count of a sequence
    Returns:
        Line or page index, clamped to the content
    """
    if isinstance(content, TextContent): total = content.total_lines
    else: total = content

    if saved is None or total <= 0: return 0

    if isinstance(saved, TextProgress):
        if saved.start_char_index is not None and isinstance(content, TextContent):
            return clamp_index(find_line_index(content.line_start_offsets, saved.start_char_index), total)
        if saved.total_lines == total:
            return clamp_index(saved.current_line_index, total)
        # content length changed: percent of the new length drifts, accepted
        return index_from_percent(saved.percent, total)

    if saved.total == total:
        return clamp_index(saved.current, total)
    return index_from_percent(saved.percent, total)

class TrailingThrottle(Generic[T]):
    """
    Delivers at most one value per window, always the most recent one.
    The first value starts the window instead of being delivered immediately.
    """

    def __init__(self, callback: Callable[[T], None], window_ms: int = settings.PROGRESS_THROTTLE_MS):
        self.callback = callback
        self.window = window_ms / 1000
        self._latest: Optional[T] = None
        self._has_value = False
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._has_value

    def submit(self, value: T) -> None:
        self._latest = value
        self._has_value = True
        if self._timer is None:
            self._timer = asyncio.get_running_loop().call_later(self.window, self._fire)

    def flush(self) -> None:
        """Deliver the undelivered value now"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._deliver()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._latest = None
        self._has_value = False

    def _fire(self) -> None:
        self._timer = None
        self._deliver()

    def _deliver(self) -> None:
        if not self._has_value: return
        value = self._latest
        self._latest = None
        self._has_value = False
        self.callback(value)

class ProgressTracker:
    """
    Turns viewport and page events of one reader session into progress records.
    Records go through a trailing throttle to the sink; close() delivers the
    last record before the session goes away.
    """

    def __init__(
        self,
        entity_id: str,
        kind: ProgressKind,
        sink: ProgressSink,
        window_ms: int = settings.PROGRESS_THROTTLE_MS,
    ):
        self.entity_id = entity_id
        self.kind = kind
        self.sink = sink
        self.content: Optional[TextContent] = None
        self.total = 0
        self.closed = False
        self._restored = False
        self._throttle: TrailingThrottle[ProgressRecord] = TrailingThrottle(self._deliver, window_ms)

    def load_content(self, content: Union[TextContent, int]) -> None:
        """Swap in new content; progress for the old content is delivered first"""
        self._throttle.flush()

        if isinstance(content, TextContent):
            self.content = content
            self.total = content.total_lines
        else:
            self.content = None
            self.total = content

        self._restored = False

    def initial_position(self, saved: Optional[ProgressRecord]) -> Optional[int]:
        """Restore once per content load; later calls return None"""
        if self._restored: return None
        self._restored = True

        position = restore_initial_position(saved, self.content if self.content is not None else self.total)
        logger.debug(f"Restoring {self.kind.value} {self.entity_id} at {position}")
        return position

    def on_viewport_changed(self, viewport: ViewportRange) -> None:
        self.on_page_changed(viewport.start_index)

    def on_page_changed(self, index: int) -> None:
        if self.closed: return

        if self.kind == ProgressKind.BOOK:
            if self.content is None: return
            record = create_book_progress(index, self.content)
        else:
            record = create_sequence_progress(index, self.total)

        self._throttle.submit(record)

    def flush(self) -> None:
        self._throttle.flush()

    def close(self) -> None:
        if self.closed: return
        self._throttle.flush()
        self._throttle.cancel()
        self.closed = True

    def discard(self) -> None:
        """Close without delivering; used when the entity itself is gone"""
        self._throttle.cancel()
        self.closed = True

    def _deliver(self, record: ProgressRecord) -> None:
        self.sink(self.kind, self.entity_id, record)
