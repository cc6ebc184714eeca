"""
Eriri Comic API Routes
"""
import logging
import mimetypes
import os
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from eriri.core.exceptions import EririException
from eriri.db.sqlite import get_db
from eriri.db.models import Comic
from eriri.models.comic import ComicImagesResponse, ComicItem, ComicListResponse, FileTags, ImageInfo
from eriri.models.progress import ProgressKind
from eriri.services.comic_service import comic_service
from eriri.services.progress_store import progress_store

router = APIRouter()
logger = logging.getLogger(__name__)

def _comic_item(comic: Comic) -> ComicItem:
    item = ComicItem.model_validate(comic)
    progress = progress_store.get_sequence_progress(ProgressKind.COMIC, comic.id)
    if progress: item.percent = progress.percent
    return item

@router.get("/library/{library_id}", response_model=ComicListResponse)
async def list_comics(library_id: str, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    List the comics of a library
    """
    try:
        comics = (
            db.query(Comic)
            .filter(Comic.library_id == library_id)
            .order_by(Comic.title)
            .offset(skip).limit(limit).all()
        )
        comic_items = [_comic_item(comic) for comic in comics]
        return ComicListResponse(comics=comic_items, total=len(comic_items))

    except Exception as e:
        logger.error(f"Failed to list comics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list comics: {str(e)}"
        )

@router.get("/{comic_id}", response_model=ComicItem)
async def get_comic(comic_id: str, db: Session = Depends(get_db)):
    """
    Get information about a comic
    """
    try:
        return _comic_item(comic_service.get_comic(db, comic_id))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get comic: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get comic: {str(e)}"
        )

@router.get("/{comic_id}/images", response_model=ComicImagesResponse)
async def get_comic_images(comic_id: str, db: Session = Depends(get_db)):
    """
    Get the page images of a comic
    """
    try:
        images = await comic_service.get_comic_images(db, comic_id)
        return ComicImagesResponse(comic_id=comic_id, images=images, total=len(images))

    except EririException as e:
        logger.error(f"Failed to list images of comic {comic_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get comic images: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get comic images: {str(e)}"
        )

@router.get("/{comic_id}/images/{filename}")
async def get_comic_image(comic_id: str, filename: str, db: Session = Depends(get_db)):
    """
    Serve one page image
    """
    try:
        image = await comic_service.get_image(db, comic_id, filename)
        if not os.path.exists(image.path):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Image {filename} not found")

        media_type = mimetypes.guess_type(image.filename)[0] or "application/octet-stream"
        return FileResponse(path=image.path, media_type=media_type, filename=image.filename)

    except HTTPException: raise
    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get comic image: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get comic image: {str(e)}"
        )

@router.put("/{comic_id}/images/{filename}/tags", response_model=ImageInfo)
async def update_image_tags(comic_id: str, filename: str, tags: FileTags, db: Session = Depends(get_db)):
    """
    Star or mark an image as deleted
    """
    try:
        image = await comic_service.update_image_tags(db, comic_id, filename, tags)
        if image is None:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to store tags for {filename}"
            )
        return image

    except HTTPException: raise
    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to update image tags: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update image tags: {str(e)}"
        )
