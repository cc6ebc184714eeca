"""
Eriri Reading Progress API Routes
"""
import logging
from fastapi import APIRouter, HTTPException, status
from eriri.models.progress import ProgressKind, ProgressResponse, ProgressState
from eriri.services.progress_store import progress_store

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("/", response_model=ProgressState)
async def get_all_progress():
    """
    Get every stored progress record
    """
    return progress_store.all_progress()

@router.post("/flush", status_code=status.HTTP_204_NO_CONTENT)
async def flush_progress():
    """
    Write pending progress to storage now
    """
    try:
        await progress_store.storage.flush()

    except Exception as e:
        logger.error(f"Failed to flush progress: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to flush progress: {str(e)}"
        )

@router.get("/{kind}/{entity_id}", response_model=ProgressResponse)
async def get_progress(kind: ProgressKind, entity_id: str):
    """
    Get reading progress for a book, comic or video
    """
    return ProgressResponse(kind=kind, entity_id=entity_id, progress=progress_store.get(kind, entity_id))

@router.delete("/{kind}/{entity_id}", response_model=ProgressResponse)
async def remove_progress(kind: ProgressKind, entity_id: str):
    """
    Remove reading progress for a book, comic or video
    """
    if not progress_store.remove(kind, entity_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {kind.value} progress for {entity_id}"
        )

    return ProgressResponse(kind=kind, entity_id=entity_id, progress=None)
