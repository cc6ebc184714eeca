"""
Eriri Custom Exception Classes
"""
from fastapi import status

class EririException(Exception):
    """Base exception for Eriri application"""

    def __init__(
        self,
        detail: str = "An error occurred",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    ):
        self.detail = detail
        self.status_code = status_code
        super().__init__(self.detail)

class ParseError(EririException):
    """Exception raised when a text source cannot be read or decoded"""

    def __init__(self, detail: str = "Failed to parse book file"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_400_BAD_REQUEST
        )

class FetchError(EririException):
    """Exception raised when listing the images of a comic fails"""

    def __init__(self, detail: str = "Failed to list images"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_502_BAD_GATEWAY
        )

class LibraryNotFoundException(EririException):
    """Exception raised when a requested library is not found"""

    def __init__(self, library_id: str):
        super().__init__(
            detail=f"Library with ID {library_id} not found",
            status_code=status.HTTP_404_NOT_FOUND
        )

class BookNotFoundException(EririException):
    """Exception raised when a requested book is not found"""

    def __init__(self, book_id: str):
        super().__init__(
            detail=f"Book with ID {book_id} not found",
            status_code=status.HTTP_404_NOT_FOUND
        )

class ComicNotFoundException(EririException):
    """Exception raised when a requested comic is not found"""

    def __init__(self, comic_id: str):
        super().__init__(
            detail=f"Comic with ID {comic_id} not found",
            status_code=status.HTTP_404_NOT_FOUND
        )

class VideoNotFoundException(EririException):
    """Exception raised when a requested video is not found"""

    def __init__(self, video_id: str):
        super().__init__(
            detail=f"Video with ID {video_id} not found",
            status_code=status.HTTP_404_NOT_FOUND
        )

class SessionNotFoundException(EririException):
    """Exception raised when a reader session is not open"""

    def __init__(self, session_id: str):
        super().__init__(
            detail=f"Reader session {session_id} not found",
            status_code=status.HTTP_404_NOT_FOUND
        )

class LibraryScanException(EririException):
    """Exception raised when a library root cannot be scanned"""

    def __init__(self, detail: str = "Failed to scan library"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_400_BAD_REQUEST
        )

class StorageException(EririException):
    """Exception raised when blob storage operations fail"""

    def __init__(self, detail: str = "Storage operation failed"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

class DatabaseException(EririException):
    """Exception raised when database operations fail"""

    def __init__(self, detail: str = "Database operation failed"):
        super().__init__(
            detail=detail,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

class ImageNotFoundException(EririException):
    """Exception raised when a comic has no image with the requested name"""

    def __init__(self, comic_id: str, filename: str):
        super().__init__(
            detail=f"Image {filename} not found in comic {comic_id}",
            status_code=status.HTTP_404_NOT_FOUND
        )
