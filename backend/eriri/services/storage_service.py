"""
Eriri Storage Service - debounced key/value persistence over a blob backend

Writes are best effort: a value is only durable once the debounce window has
elapsed and the backend write succeeded. A failed write is logged and dropped,
so at most one debounce interval of updates can be lost.
"""
import asyncio
import atexit
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Set
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from eriri.core.config import settings
from eriri.core.exceptions import StorageException
from eriri.db.models import StorageBlob
from eriri.db.sqlite import SessionLocal

logger = logging.getLogger(__name__)

class BlobBackend(Protocol):
    """Synchronous persistence primitives keyed by logical store name"""

    def read_blob(self, key: str) -> Optional[str]: ...

    def write_blob(self, key: str, data: Optional[str]) -> None: ...

    def delete_blob(self, key: str) -> None: ...

class SQLiteBlobBackend:
    """Blob backend on the storage_blobs table"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def read_blob(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            blob = db.query(StorageBlob).filter(StorageBlob.key == key).first()
            return blob.data if blob else None
        except SQLAlchemyError as e:
            raise StorageException(f"Failed to read blob {key}: {str(e)}") from e
        finally: db.close()

    def write_blob(self, key: str, data: Optional[str]) -> None:
        db = self.session_factory()
        try:
            blob = db.query(StorageBlob).filter(StorageBlob.key == key).first()
            if blob: blob.data = data
            else: db.add(StorageBlob(key=key, data=data))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageException(f"Failed to write blob {key}: {str(e)}") from e
        finally: db.close()

    def delete_blob(self, key: str) -> None:
        db = self.session_factory()
        try:
            db.query(StorageBlob).filter(StorageBlob.key == key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageException(f"Failed to delete blob {key}: {str(e)}") from e
        finally: db.close()

class StorageState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FLUSHING = "flushing"

@dataclass
class PendingWrite:
    key: str
    value: Optional[str]

class DebouncedStorage:
    """
    Single-slot mailbox in front of a blob backend.
    set_item replaces the pending value and restarts the delay timer, so only
    the last value before the timer fires is written. Reads see pending values
    immediately and wait for writes that are already running. Backend writes
    run one at a time in dispatch order, each waiting on the previous flush signal.
    """

    def __init__(self, backend: BlobBackend, delay_ms: int = settings.STORAGE_DEBOUNCE_MS, name: str = "storage"):
        self.backend = backend
        self.delay = delay_ms / 1000
        self.name = name
        self.state = StorageState.IDLE
        self._pending: Optional[PendingWrite] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        # resolved once the current pending value has been handed to the backend and written
        self._flush_signal: Optional[asyncio.Future] = None
        # signal of the most recently dispatched write; the next write starts only after it resolves
        self._last_signal: Optional[asyncio.Future] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._teardown_registered = False

    def set_item(self, key: str, value: Optional[str]) -> None:
        """
        Schedule value to be written under key after the debounce delay
        Args:
            key: Storage key
            value: Serialized value
        """
        loop = asyncio.get_running_loop()

        # the slot holds one key; a different key's value goes out now instead of being dropped
        if self._pending is not None and self._pending.key != key:
            self._dispatch()

        self._pending = PendingWrite(key=key, value=value)
        if self._timer is not None: self._timer.cancel()
        self._timer = loop.call_later(self.delay, self._dispatch)

        if self._flush_signal is None:
            self._flush_signal = loop.create_future()

        self.state = StorageState.PENDING

    async def get_item(self, key: str) -> Optional[str]:
        """
        Read a value, seeing writes that have not reached the backend yet
        Args:
            key: Storage key
        Returns:
            Stored value or None when missing or empty
        """
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

        if self._pending is not None and self._pending.key == key:
            return self._pending.value

        data = await asyncio.to_thread(self.backend.read_blob, key)
        return data or None

    async def remove_item(self, key: str) -> None:
        """Flush any pending value first so a delayed write cannot resurrect the key"""
        await self.flush()
        await asyncio.to_thread(self.backend.delete_blob, key)
        logger.info(f"{self.name}: removed {key}")

    async def flush(self) -> None:
        """Write the pending value now and wait for every running write"""
        if self._pending is not None: self._dispatch()
        await self.settled()

    async def settled(self) -> None:
        """Wait until the pending value, or the last dispatched one, has reached the backend"""
        signal = self._flush_signal or self._last_signal
        if signal is not None and not signal.done(): await asyncio.shield(signal)

        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    def flush_sync(self) -> None:
        """Teardown path: write the pending value on the calling thread without waiting for the timer"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        write, signal = self._pending, self._flush_signal
        self._pending = None
        self._flush_signal = None
        if write is None: return

        try:
            self.backend.write_blob(write.key, write.value)
            logger.info(f"{self.name}: flushed {write.key} on teardown")
        except Exception as e:
            logger.error(f"{self.name}: failed to flush {write.key} on teardown: {str(e)}")
        finally:
            self._resolve(signal)
            self.state = StorageState.FLUSHING if self._in_flight else StorageState.IDLE

    def register_teardown(self) -> None:
        if self._teardown_registered: return
        atexit.register(self.flush_sync)
        self._teardown_registered = True

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def _dispatch(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        write, signal = self._pending, self._flush_signal
        self._pending = None
        self._flush_signal = None
        if write is None: return

        loop = asyncio.get_running_loop()
        if signal is None: signal = loop.create_future()
        previous, self._last_signal = self._last_signal, signal

        self.state = StorageState.FLUSHING
        task = loop.create_task(self._write(write, signal, previous))
        self._in_flight.add(task)
        task.add_done_callback(self._on_write_done)

    async def _write(self, write: PendingWrite, signal: asyncio.Future, previous: Optional[asyncio.Future]) -> None:
        try:
            # one backend write at a time, in dispatch order
            if previous is not None and not previous.done(): await asyncio.shield(previous)
            await asyncio.to_thread(self.backend.write_blob, write.key, write.value)
            logger.debug(f"{self.name}: wrote {write.key}")
        except Exception as e:
            # not retried; the value is gone once the write fails
            logger.error(f"{self.name}: failed to write {write.key}: {str(e)}")
        finally:
            self._resolve(signal)

    def _on_write_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if self._in_flight: return
        self.state = StorageState.PENDING if self._pending is not None else StorageState.IDLE

    @staticmethod
    def _resolve(signal: Optional[asyncio.Future]) -> None:
        if signal is None or signal.done(): return
        if signal.get_loop().is_closed(): return
        signal.set_result(None)

blob_backend = SQLiteBlobBackend()
progress_storage = DebouncedStorage(blob_backend, name="progress-storage")
