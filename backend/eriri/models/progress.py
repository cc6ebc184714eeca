"""
Eriri Reading Progress Pydantic Models
"""
from enum import Enum
from typing import Dict, Optional, Union
from pydantic import BaseModel, Field

class ProgressKind(str, Enum):
    """Content kinds that carry a progress record"""
    BOOK = "book"
    COMIC = "comic"
    VIDEO = "video"

class TextProgress(BaseModel):
    """Position inside a book, by dense line index"""
    current_line_index: int = 0
    total_lines: int = 0
    percent: float = Field(0.0, ge=0.0, le=100.0)
    current_chapter_title: str = ""
    # epoch milliseconds
    last_read: int = 0
    # start offset of current_line_index, survives re-parsing better than percent
    start_char_index: Optional[int] = None

class SequenceProgress(BaseModel):
    """Position inside a comic or a video"""
    current: int = 0
    total: int = 0
    percent: float = Field(0.0, ge=0.0, le=100.0)
    last_read: int = 0

ProgressRecord = Union[TextProgress, SequenceProgress]

class ProgressState(BaseModel):
    """Persisted document holding every progress record"""
    books: Dict[str, TextProgress] = Field(default_factory=dict)
    comics: Dict[str, SequenceProgress] = Field(default_factory=dict)
    videos: Dict[str, SequenceProgress] = Field(default_factory=dict)

class ViewportRange(BaseModel):
    """Visible item range reported by a virtualized list (inclusive)"""
    start_index: int
    end_index: int

class ProgressResponse(BaseModel):
    """Response model for a single progress record"""
    kind: ProgressKind
    entity_id: str
    progress: Optional[Union[TextProgress, SequenceProgress]] = None
