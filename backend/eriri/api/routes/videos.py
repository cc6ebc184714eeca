"""
Eriri Video API Routes
"""
import logging
import mimetypes
import os
from typing import Dict, Tuple
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from eriri.core.exceptions import EririException, VideoNotFoundException
from eriri.db.sqlite import get_db
from eriri.db.models import Video
from eriri.models.progress import ProgressKind
from eriri.models.video import VideoItem, VideoListResponse
from eriri.services.progress_store import progress_store
from eriri.services.tag_service import tag_service

router = APIRouter()
logger = logging.getLogger(__name__)

def _video_item(video: Video, tags: Dict[str, Tuple[bool, bool]]) -> VideoItem:
    item = VideoItem.model_validate(video)
    item.url = f"/api/videos/{video.id}/stream"
    item.starred, item.deleted = tags.get(video.path, (False, False))

    progress = progress_store.get_sequence_progress(ProgressKind.VIDEO, video.id)
    if progress: item.percent = progress.percent
    return item

def _get_video(db: Session, video_id: str) -> Video:
    video = db.query(Video).filter(Video.id == video_id).first()
    if not video: raise VideoNotFoundException(video_id)
    return video

@router.get("/library/{library_id}", response_model=VideoListResponse)
async def list_videos(library_id: str, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    List the videos of a library
    """
    try:
        videos = (
            db.query(Video)
            .filter(Video.library_id == library_id)
            .order_by(Video.title)
            .offset(skip).limit(limit).all()
        )
        tags = tag_service.get_tags([video.path for video in videos])
        video_items = [_video_item(video, tags) for video in videos]
        return VideoListResponse(videos=video_items, total=len(video_items))

    except Exception as e:
        logger.error(f"Failed to list videos: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list videos: {str(e)}"
        )

@router.get("/{video_id}", response_model=VideoItem)
async def get_video(video_id: str, db: Session = Depends(get_db)):
    """
    Get information about a video
    """
    try:
        video = _get_video(db, video_id)
        return _video_item(video, tag_service.get_tags([video.path]))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get video: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get video: {str(e)}"
        )

@router.get("/{video_id}/stream")
async def stream_video(video_id: str, db: Session = Depends(get_db)):
    """
    Serve the video file
    """
    try:
        video = _get_video(db, video_id)
        if not os.path.exists(video.path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Video file for {video_id} not found")

        media_type = mimetypes.guess_type(video.path)[0] or "application/octet-stream"
        return FileResponse(path=video.path, media_type=media_type)

    except HTTPException: raise
    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to stream video: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to stream video: {str(e)}"
        )
