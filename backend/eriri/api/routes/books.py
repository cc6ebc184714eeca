"""
Eriri Book API Routes
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from eriri.core.exceptions import BookNotFoundException, EririException
from eriri.db.sqlite import get_db
from eriri.db.models import Book
from eriri.models.book import BookContentResponse, BookItem, BookListResponse
from eriri.services.book_parser import parse_book
from eriri.services.progress_store import progress_store

router = APIRouter()
logger = logging.getLogger(__name__)

def _book_item(book: Book) -> BookItem:
    item = BookItem.model_validate(book)
    progress = progress_store.get_book_progress(book.id)
    if progress:
        item.percent = progress.percent
        item.current_chapter_title = progress.current_chapter_title
    return item

@router.get("/library/{library_id}", response_model=BookListResponse)
async def list_books(library_id: str, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    """
    List the books of a library, grouped by author
    """
    try:
        books = (
            db.query(Book)
            .filter(Book.library_id == library_id)
            .order_by(Book.author, Book.title)
            .offset(skip).limit(limit).all()
        )
        book_items = [_book_item(book) for book in books]
        return BookListResponse(books=book_items, total=len(book_items))

    except Exception as e:
        logger.error(f"Failed to list books: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to list books: {str(e)}"
        )

@router.get("/{book_id}", response_model=BookItem)
async def get_book(book_id: str, db: Session = Depends(get_db)):
    """
    Get information about a book
    """
    try:
        book = db.query(Book).filter(Book.id == book_id).first()
        if not book: raise BookNotFoundException(book_id)
        return _book_item(book)

    except EririException as e: raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get book: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get book: {str(e)}"
        )

@router.get("/{book_id}/content", response_model=BookContentResponse)
async def get_book_content(book_id: str, db: Session = Depends(get_db)):
    """
    Get the indexed lines and chapters of a book
    """
    try:
        book = db.query(Book).filter(Book.id == book_id).first()
        if not book: raise BookNotFoundException(book_id)

        content = await parse_book(book.path)
        return BookContentResponse(
            book_id=book.id,
            title=book.title,
            lines=content.lines,
            chapters=content.chapters,
            total_lines=content.total_lines,
            total_chars=content.total_chars,
        )

    except EririException as e:
        logger.error(f"Failed to get content of book {book_id}: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    except Exception as e:
        logger.error(f"Failed to get book content: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to get book content: {str(e)}"
        )
