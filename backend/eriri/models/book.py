"""
Eriri Book Pydantic Models
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class Chapter(BaseModel):
    """A chapter heading found while indexing a text"""

    title: str
    line_index: int
    char_index: int

    class Config:
        """Pydantic config"""

        frozen = True


class TextContent(BaseModel):
    """
    Parsed text of one book.
    Line indices are dense indices over non-empty lines, not file line numbers.
    """

    lines: List[str] = Field(default_factory=list)
    line_start_offsets: List[int] = Field(default_factory=list)
    chapters: List[Chapter] = Field(default_factory=list)
    total_chars: int = 0

    @property
    def total_lines(self) -> int:
        return len(self.lines)


class BookItem(BaseModel):
    """Book item in list response"""

    id: str
    library_id: str
    author: str
    title: str
    path: str
    size: int
    created_at: Optional[datetime] = None
    percent: float = 0.0
    current_chapter_title: str = ""

    class Config:
        """Pydantic config"""

        from_attributes = True


class BookListResponse(BaseModel):
    """Response model for listing books"""

    books: List[BookItem]
    total: int


class BookContentResponse(BaseModel):
    """Response model for parsed book content"""

    book_id: str
    title: str
    lines: List[str]
    chapters: List[Chapter]
    total_lines: int
    total_chars: int
