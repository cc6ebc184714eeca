"""
Eriri Reader Session API Routes
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from eriri.core.exceptions import EririException
from eriri.db.sqlite import get_db
from eriri.models.progress import ViewportRange
from eriri.models.reader import (BookSessionResponse, ComicSessionResponse, LayoutRequest, NavigationRequest,
                                 NavigationResponse, SessionStateResponse, VideoOpenRequest,
                                 VideoSessionResponse, ViewMode)
from eriri.services.session_service import ReaderSession, session_manager

router = APIRouter()
logger = logging.getLogger(__name__)

def _comic_response(session: ReaderSession, include_images: bool = False) -> ComicSessionResponse:
    return ComicSessionResponse(
        session_id=session.id,
        comic_id=session.entity_id,
        images=session.images if include_images else [],
        current_index=session.current_index,
        visible_indices=session_manager.visible_indices(session),
        view_mode=session.engine.view_mode if session.engine else ViewMode.SINGLE,
    )

def _state_response(session: ReaderSession, closed: bool = False) -> SessionStateResponse:
    return SessionStateResponse(session_id=session.id, kind=session.kind, entity_id=session.entity_id, closed=closed)

def _navigation_response(session: ReaderSession) -> NavigationResponse:
    return NavigationResponse(
        session_id=session.id,
        kind=session.kind,
        entity_id=session.entity_id,
        current_index=session.current_index,
        visible_indices=session_manager.visible_indices(session),
        view_mode=session.engine.view_mode if session.engine else None,
    )

@router.post("/books/{book_id}", response_model=BookSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_book(book_id: str, db: Session = Depends(get_db)):
    """
    Open a book; the response carries the line to scroll to
    """
    try:
        session = await session_manager.open_book(db, book_id)
        content = session.content
        return BookSessionResponse(
            session_id=session.id,
            book_id=book_id,
            title=session.title,
            lines=content.lines,
            chapters=content.chapters,
            total_lines=content.total_lines,
            total_chars=content.total_chars,
            initial_line_index=session.current_index,
        )

    except EririException as e:
        logger.error(f"Failed to open book {book_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to open book: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to open book: {str(e)}"
        )

@router.post("/comics/{comic_id}", response_model=ComicSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_comic(comic_id: str, layout: LayoutRequest, db: Session = Depends(get_db)):
    """
    Open a comic with a layout; the response carries the page to show
    """
    try:
        session = await session_manager.open_comic(db, comic_id, layout)
        return _comic_response(session, include_images=True)

    except EririException as e:
        logger.error(f"Failed to open comic {comic_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to open comic: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to open comic: {str(e)}"
        )

@router.post("/videos/{video_id}", response_model=VideoSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_video(video_id: str, video_open: VideoOpenRequest, db: Session = Depends(get_db)):
    """
    Open a video; viewport reports carry the playback second in start_index
    """
    try:
        session = session_manager.open_video(db, video_id, video_open.duration)
        return VideoSessionResponse(
            session_id=session.id,
            video_id=video_id,
            title=session.title,
            url=f"/api/videos/{video_id}/stream",
            duration=video_open.duration,
            initial_position=session.current_index,
        )

    except EririException as e:
        logger.error(f"Failed to open video {video_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to open video: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to open video: {str(e)}"
        )

@router.put("/sessions/{session_id}/viewport", response_model=SessionStateResponse)
async def update_viewport(session_id: str, viewport: ViewportRange):
    """
    Report the visible range of a reader
    """
    try:
        return _state_response(session_manager.viewport(session_id, viewport))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)

@router.post("/sessions/{session_id}/navigate", response_model=NavigationResponse)
async def navigate(session_id: str, navigation: NavigationRequest):
    """
    Move to the next, previous or a given position; pages for comics, lines for books, seconds for videos
    """
    try:
        return _navigation_response(session_manager.navigate(session_id, navigation.action, navigation.index))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)

@router.put("/sessions/{session_id}/layout", response_model=ComicSessionResponse)
async def update_layout(session_id: str, layout: LayoutRequest):
    """
    Change view mode or container geometry of a comic reader
    """
    try:
        return _comic_response(session_manager.set_layout(session_id, layout))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)

@router.delete("/sessions/{session_id}", response_model=SessionStateResponse)
async def close_session(session_id: str):
    """
    Close a reader; pending progress is handed to storage before returning
    """
    try:
        return _state_response(session_manager.close(session_id), closed=True)

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
