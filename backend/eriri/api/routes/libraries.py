"""
Eriri Library Management API Routes
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from eriri.core.exceptions import EririException
from eriri.db.sqlite import get_db
from eriri.models.library import LibraryCreate, LibraryListResponse, LibraryResponse
from eriri.services.library_service import library_service

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/", response_model=LibraryResponse, status_code=status.HTTP_201_CREATED)
async def import_library(library_create: LibraryCreate, db: Session = Depends(get_db)):
    """
    Import and scan a library root
    """
    try:
        library = library_service.import_library(db, library_create.path, library_create.name)
        return library_service.to_response(db, library)

    except EririException as e:
        logger.error(f"Failed to import library {library_create.path}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to import library: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import library: {str(e)}"
        )

@router.get("/", response_model=LibraryListResponse)
async def list_libraries(db: Session = Depends(get_db)):
    """
    List all imported libraries
    """
    try:
        libraries = [library_service.to_response(db, library) for library in library_service.list_libraries(db)]
        return LibraryListResponse(libraries=libraries, total=len(libraries))

    except Exception as e:
        logger.error(f"Failed to list libraries: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list libraries: {str(e)}"
        )

@router.get("/{library_id}", response_model=LibraryResponse)
async def get_library(library_id: str, db: Session = Depends(get_db)):
    """
    Get a library
    """
    try:
        return library_service.to_response(db, library_service.get_library(db, library_id))

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get library: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get library: {str(e)}"
        )

@router.post("/{library_id}/refresh", response_model=LibraryResponse)
async def refresh_library(library_id: str, db: Session = Depends(get_db)):
    """
    Rescan a library
    """
    try:
        library = library_service.refresh_library(db, library_id)
        return library_service.to_response(db, library)

    except EririException as e:
        logger.error(f"Failed to refresh library {library_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to refresh library: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to refresh library: {str(e)}"
        )

@router.delete("/{library_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_library(library_id: str, db: Session = Depends(get_db)):
    """
    Remove a library together with the progress of its items
    """
    try:
        library_service.remove_library(db, library_id)

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to remove library: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to remove library: {str(e)}"
        )
