"""
Eriri Session Service - reader sessions binding content, progress tracking and navigation
"""
import logging
import uuid
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from eriri.core.exceptions import BookNotFoundException, SessionNotFoundException, VideoNotFoundException
from eriri.db.models import Book, Video
from eriri.models.book import TextContent
from eriri.models.comic import ImageInfo
from eriri.models.progress import ProgressKind, ViewportRange
from eriri.models.reader import LayoutRequest, NavigationAction
from eriri.services.book_parser import parse_book
from eriri.services.comic_service import ComicService, comic_service
from eriri.services.pairing_service import PagePairingEngine
from eriri.services.progress_service import ProgressTracker, clamp_index
from eriri.services.progress_store import ProgressStore, progress_store

logger = logging.getLogger(__name__)

class ReaderSession:
    """State of one open reader; mutated in place by the session manager"""

    def __init__(self, kind: ProgressKind, entity_id: str, title: str, tracker: ProgressTracker):
        self.id = str(uuid.uuid4())
        self.kind = kind
        self.entity_id = entity_id
        self.title = title
        self.tracker = tracker
        self.current_index = 0
        self.content: Optional[TextContent] = None
        self.images: List[ImageInfo] = []
        self.engine: Optional[PagePairingEngine] = None

    def close(self) -> None:
        self.tracker.close()

class SessionManager:
    """Open reader sessions by id"""

    def __init__(self, progress: ProgressStore = progress_store, comics: ComicService = comic_service):
        self.progress = progress
        self.comics = comics
        self.sessions: Dict[str, ReaderSession] = {}

    def _tracker(self, kind: ProgressKind, entity_id: str) -> ProgressTracker:
        return ProgressTracker(entity_id, kind, self.progress.update)

    async def open_book(self, db: Session, book_id: str) -> ReaderSession:
        """
        Parse a book and open a session positioned at the stored progress
        Args:
            db: Database session
            book_id: ID of the book
        Returns:
            The opened session; current_index is the line to scroll to
        Raises:
            BookNotFoundException: if the book is unknown
            ParseError: if the text cannot be read, no session is created
        """
        book = db.query(Book).filter(Book.id == book_id).first()
        if not book: raise BookNotFoundException(book_id)

        content = await parse_book(book.path)

        session = ReaderSession(ProgressKind.BOOK, book_id, book.title, self._tracker(ProgressKind.BOOK, book_id))
        session.content = content
        session.tracker.load_content(content)
        session.current_index = session.tracker.initial_position(self.progress.get_book_progress(book_id)) or 0

        self.sessions[session.id] = session
        logger.info(f"Opened book session {session.id} for {book_id} at line {session.current_index}")
        return session

    async def open_comic(self, db: Session, comic_id: str, layout: LayoutRequest) -> ReaderSession:
        """
        Open a comic session with the given layout, positioned at the stored page
        Args:
            db: Database session
            comic_id: ID of the comic
            layout: View mode and container geometry
        Returns:
            The opened session
        """
        comic = self.comics.get_comic(db, comic_id)
        images = await self.comics.get_comic_images(db, comic_id)

        session = ReaderSession(ProgressKind.COMIC, comic_id, comic.title, self._tracker(ProgressKind.COMIC, comic_id))
        session.images = images
        session.engine = PagePairingEngine(images, layout.view_mode, layout.container_width, layout.container_height)
        session.tracker.load_content(len(images))

        saved = self.progress.get_sequence_progress(ProgressKind.COMIC, comic_id)
        session.current_index = session.engine.jump_to(session.tracker.initial_position(saved) or 0)

        self.sessions[session.id] = session
        logger.info(f"Opened comic session {session.id} for {comic_id} at page {session.current_index}")
        return session

    def open_video(self, db: Session, video_id: str, duration: int) -> ReaderSession:
        """
        Open a video session; positions are whole seconds of playback
        Args:
            db: Database session
            video_id: ID of the video
            duration: Length in seconds as reported by the player
        Returns:
            The opened session positioned at the stored second
        """
        video = db.query(Video).filter(Video.id == video_id).first()
        if not video: raise VideoNotFoundException(video_id)

        session = ReaderSession(ProgressKind.VIDEO, video_id, video.title, self._tracker(ProgressKind.VIDEO, video_id))
        session.tracker.load_content(duration)

        saved = self.progress.get_sequence_progress(ProgressKind.VIDEO, video_id)
        session.current_index = session.tracker.initial_position(saved) or 0

        self.sessions[session.id] = session
        logger.info(f"Opened video session {session.id} for {video_id} at {session.current_index}s")
        return session

    def get(self, session_id: str) -> ReaderSession:
        session = self.sessions.get(session_id)
        if session is None: raise SessionNotFoundException(session_id)
        return session

    def viewport(self, session_id: str, viewport: ViewportRange) -> ReaderSession:
        session = self.get(session_id)
        session.current_index = clamp_index(viewport.start_index, session.tracker.total)
        session.tracker.on_viewport_changed(viewport)
        return session

    def navigate(self, session_id: str, action: NavigationAction, index: Optional[int] = None) -> ReaderSession:
        session = self.get(session_id)
        current = session.current_index
        target = index if index is not None else current

        if session.engine is not None:
            engine = session.engine
            if action == NavigationAction.NEXT: new_index = engine.next(current)
            elif action == NavigationAction.PREV: new_index = engine.prev(current)
            else: new_index = engine.jump_to(target)
        else:
            # books step one line, videos one second
            if action == NavigationAction.NEXT: target = current + 1
            elif action == NavigationAction.PREV: target = current - 1
            new_index = clamp_index(target, session.tracker.total)

        if new_index != session.current_index:
            session.current_index = new_index
            session.tracker.on_page_changed(new_index)

        return session

    def set_layout(self, session_id: str, layout: LayoutRequest) -> ReaderSession:
        session = self.get(session_id)
        if session.engine is not None:
            session.engine.set_layout(layout.view_mode, layout.container_width, layout.container_height)
        return session

    def visible_indices(self, session: ReaderSession) -> List[int]:
        if session.engine is None: return [session.current_index]
        return session.engine.visible_indices(session.current_index)

    def close(self, session_id: str) -> ReaderSession:
        """Close a session; its last progress update is delivered before it goes away"""
        session = self.sessions.pop(session_id, None)
        if session is None: raise SessionNotFoundException(session_id)

        session.close()
        logger.info(f"Closed session {session_id}")
        return session

    def close_all(self) -> None:
        for session_id in list(self.sessions.keys()):
            self.close(session_id)

    def close_for_entity(self, kind: ProgressKind, entity_id: str) -> int:
        """Drop every session on an entity that is being removed; undelivered progress is discarded"""
        stale = [s for s in self.sessions.values() if s.kind == kind and s.entity_id == entity_id]
        for session in stale:
            del self.sessions[session.id]
            session.tracker.discard()

        if stale: logger.info(f"Discarded {len(stale)} sessions of removed {kind.value} {entity_id}")
        return len(stale)

session_manager = SessionManager()
