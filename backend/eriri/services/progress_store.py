"""
Eriri Progress Store - in-memory progress records persisted as one JSON document
"""
import logging
from typing import Dict, Optional
from pydantic import ValidationError
from eriri.core.config import settings
from eriri.models.progress import ProgressKind, ProgressRecord, ProgressState, SequenceProgress, TextProgress
from eriri.services.storage_service import DebouncedStorage, progress_storage

logger = logging.getLogger(__name__)

class ProgressStore:
    """
    Holds one progress record per entity and kind.
    Every change re-serializes the whole document into the debounced storage.
    """

    def __init__(self, storage: DebouncedStorage, storage_key: str = settings.PROGRESS_STORAGE_KEY):
        self.storage = storage
        self.storage_key = storage_key
        self.state = ProgressState()
        self.loaded = False

    async def load(self) -> ProgressState:
        """
        Load the stored document; missing, empty or unreadable documents mean no prior progress
        Returns:
            Loaded progress state
        """
        raw = await self.storage.get_item(self.storage_key)
        if not raw:
            logger.info("No stored progress found, starting empty")
            self.state = ProgressState()
        else:
            try:
                self.state = ProgressState.model_validate_json(raw)
                logger.info(
                    f"Loaded progress for {len(self.state.books)} books, "
                    f"{len(self.state.comics)} comics, {len(self.state.videos)} videos"
                )
            except ValidationError as e:
                logger.warning(f"Stored progress is unreadable, starting empty: {str(e)}")
                self.state = ProgressState()

        self.loaded = True
        return self.state

    def _records(self, kind: ProgressKind) -> Dict[str, ProgressRecord]:
        if kind == ProgressKind.BOOK: return self.state.books
        if kind == ProgressKind.COMIC: return self.state.comics
        return self.state.videos

    def _persist(self) -> None:
        self.storage.set_item(self.storage_key, self.state.model_dump_json())

    def get(self, kind: ProgressKind, entity_id: str) -> Optional[ProgressRecord]:
        return self._records(kind).get(entity_id)

    def get_book_progress(self, book_id: str) -> Optional[TextProgress]:
        return self.state.books.get(book_id)

    def get_sequence_progress(self, kind: ProgressKind, entity_id: str) -> Optional[SequenceProgress]:
        if kind == ProgressKind.BOOK: raise ValueError("books carry text progress")
        return self._records(kind).get(entity_id)

    def update(self, kind: ProgressKind, entity_id: str, record: ProgressRecord) -> None:
        """Overwrite the record for an entity, last write wins"""
        if kind == ProgressKind.BOOK and not isinstance(record, TextProgress):
            raise ValueError("books carry text progress")
        if kind != ProgressKind.BOOK and not isinstance(record, SequenceProgress):
            raise ValueError(f"{kind.value} progress must be a sequence record")

        self._records(kind)[entity_id] = record
        self._persist()

    def update_book_progress(self, book_id: str, record: TextProgress) -> None:
        self.update(ProgressKind.BOOK, book_id, record)

    def update_sequence_progress(self, kind: ProgressKind, entity_id: str, record: SequenceProgress) -> None:
        self.update(kind, entity_id, record)

    def remove(self, kind: ProgressKind, entity_id: str) -> bool:
        """Explicitly remove a record"""
        removed = self._records(kind).pop(entity_id, None) is not None
        if removed:
            self._persist()
            logger.info(f"Removed {kind.value} progress for {entity_id}")
        return removed

    async def clear(self) -> None:
        """Drop every record and delete the stored document"""
        self.state = ProgressState()
        await self.storage.remove_item(self.storage_key)

    def all_progress(self) -> ProgressState:
        return self.state

progress_store = ProgressStore(progress_storage)
