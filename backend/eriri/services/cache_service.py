"""
Eriri Result Cache - bounded key/payload cache with timestamp eviction
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

@dataclass
class CacheEntry(Generic[T]):
    key: str
    payload: T
    timestamp: int

class ResultCache(Generic[T]):
    """
    Bounded cache for derived per-entity results.
    Reads and writes both renew an entry's timestamp; once the entry count
    exceeds max_size the entries with the oldest timestamps are evicted.
    """

    def __init__(self, max_size: int, name: str = "cache", clock: Callable[[], int] = time.time_ns):
        if max_size < 1: raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.name = name
        self._clock = clock
        self._last_timestamp = 0
        self._entries: Dict[str, CacheEntry[T]] = {}

    def _now(self) -> int:
        # strictly increasing so back-to-back touches never tie
        timestamp = max(self._clock(), self._last_timestamp + 1)
        self._last_timestamp = timestamp
        return timestamp

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None: return None

        entry.timestamp = self._now()
        return entry.payload

    def put(self, key: str, payload: T) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.payload = payload
            entry.timestamp = self._now()
        else:
            self._entries[key] = CacheEntry(key=key, payload=payload, timestamp=self._now())

        if len(self._entries) <= self.max_size: return

        overflow = len(self._entries) - self.max_size
        oldest = sorted(self._entries.values(), key=lambda item: item.timestamp)[:overflow]
        for item in oldest: del self._entries[item.key]
        logger.debug(f"{self.name}: evicted {overflow} entries")

    def peek(self, key: str) -> Optional[T]:
        """Read without renewing recency"""
        entry = self._entries.get(key)
        return entry.payload if entry is not None else None

    def remove(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
