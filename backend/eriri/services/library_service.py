"""
Eriri Library Service - importing, refreshing and removing library roots
"""
import logging
import os
from typing import List
from sqlalchemy.orm import Session
from eriri.core.exceptions import LibraryNotFoundException, LibraryScanException
from eriri.db.models import Book, Comic, Library, Video
from eriri.models.library import LibraryResponse, LibraryType
from eriri.models.progress import ProgressKind
from eriri.services.comic_service import ComicService, comic_service
from eriri.services.progress_store import ProgressStore, progress_store
from eriri.services.scanner_service import ScannerService, scanner_service
from eriri.services.session_service import SessionManager, session_manager

logger = logging.getLogger(__name__)

class LibraryService:
    """Service for managing imported libraries"""

    def __init__(
        self,
        scanner: ScannerService = scanner_service,
        comics: ComicService = comic_service,
        progress: ProgressStore = progress_store,
        sessions: SessionManager = session_manager,
    ):
        self.scanner = scanner
        self.comics = comics
        self.progress = progress
        self.sessions = sessions

    def get_library(self, db: Session, library_id: str) -> Library:
        library = db.query(Library).filter(Library.id == library_id).first()
        if not library: raise LibraryNotFoundException(library_id)
        return library

    def to_response(self, db: Session, library: Library) -> LibraryResponse:
        model = {LibraryType.BOOK.value: Book, LibraryType.VIDEO.value: Video}.get(library.type, Comic)
        item_count = db.query(model).filter(model.library_id == library.id).count()

        return LibraryResponse(
            id=library.id,
            name=library.name,
            path=library.path,
            type=LibraryType(library.type),
            created_at=library.created_at,
            item_count=item_count,
        )

    def import_library(self, db: Session, path: str, name: str = None) -> Library:
        """
        Register a library root and scan it
        Args:
            db: Database session
            path: Library root
            name: Display name, the directory name if not given
        Returns:
            The stored library
        """
        path = os.path.abspath(path)
        existing = db.query(Library).filter(Library.path == path).first()
        if existing:
            raise LibraryScanException(f"Library at {path} is already imported")

        library_type = self.scanner.detect_library_type(path)
        library = Library(name=name or os.path.basename(path.rstrip(os.sep)), path=path, type=library_type.value)
        db.add(library)
        db.flush()

        self._apply_scan(db, library)
        db.commit()
        db.refresh(library)

        logger.info(f"Imported {library_type.value} library {library.name} ({library.id})")
        return library

    def refresh_library(self, db: Session, library_id: str) -> Library:
        """Rescan a library; entities whose path is unchanged keep their ids and progress"""
        library = self.get_library(db, library_id)
        self._apply_scan(db, library)
        db.commit()
        db.refresh(library)

        logger.info(f"Refreshed library {library.name} ({library.id})")
        return library

    def remove_library(self, db: Session, library_id: str) -> None:
        """Remove a library with its entities, their progress, open sessions and cached images"""
        library = self.get_library(db, library_id)

        for book in db.query(Book).filter(Book.library_id == library.id).all():
            self._forget(ProgressKind.BOOK, book.id)

        for comic in db.query(Comic).filter(Comic.library_id == library.id).all():
            self._forget(ProgressKind.COMIC, comic.id)

        for video in db.query(Video).filter(Video.library_id == library.id).all():
            self._forget(ProgressKind.VIDEO, video.id)

        db.delete(library)
        db.commit()
        logger.info(f"Removed library {library_id}")

    def list_libraries(self, db: Session) -> List[Library]:
        return db.query(Library).order_by(Library.created_at).all()

    def _forget(self, kind: ProgressKind, entity_id: str) -> None:
        # sessions go first, a live tracker would write the record back
        self.sessions.close_for_entity(kind, entity_id)
        self.progress.remove(kind, entity_id)
        if kind == ProgressKind.COMIC: self.comics.invalidate(entity_id)

    def _apply_scan(self, db: Session, library: Library) -> None:
        if library.type == LibraryType.BOOK.value:
            scanned = self.scanner.scan_book_library(library.path)
            existing = {book.path: book for book in db.query(Book).filter(Book.library_id == library.id).all()}

            for item in scanned:
                book = existing.pop(item["path"], None)
                if book:
                    book.size = item["size"]
                    continue
                db.add(Book(library_id=library.id, **item))

            for stale in existing.values():
                self._forget(ProgressKind.BOOK, stale.id)
                db.delete(stale)
        elif library.type == LibraryType.VIDEO.value:
            scanned = self.scanner.scan_video_library(library.path)
            existing = {video.path: video for video in db.query(Video).filter(Video.library_id == library.id).all()}

            for item in scanned:
                video = existing.pop(item["path"], None)
                if video:
                    video.size = item["size"]
                    continue
                db.add(Video(library_id=library.id, **item))

            for stale in existing.values():
                self._forget(ProgressKind.VIDEO, stale.id)
                db.delete(stale)
        else:
            scanned = self.scanner.scan_comic_library(library.path)
            existing = {comic.path: comic for comic in db.query(Comic).filter(Comic.library_id == library.id).all()}

            for item in scanned:
                comic = existing.pop(item["path"], None)
                if comic:
                    comic.cover = item["cover"]
                    self.comics.invalidate(comic.id)
                    continue
                db.add(Comic(library_id=library.id, **item))

            for stale in existing.values():
                self._forget(ProgressKind.COMIC, stale.id)
                db.delete(stale)

library_service = LibraryService()
