"""
Eriri Reader Session Pydantic Models
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from eriri.models.book import Chapter
from eriri.models.comic import ImageInfo
from eriri.models.progress import ProgressKind

class ViewMode(str, Enum):
    """Comic page layout"""
    SINGLE = "single"
    DOUBLE = "double"

class NavigationAction(str, Enum):
    """Page navigation commands"""
    NEXT = "next"
    PREV = "prev"
    JUMP = "jump"

class LayoutRequest(BaseModel):
    """Request model for comic layout and container geometry"""
    view_mode: ViewMode = ViewMode.SINGLE
    container_width: float = Field(0, ge=0)
    container_height: float = Field(0, ge=0)

class NavigationRequest(BaseModel):
    """Request model for page navigation"""
    action: NavigationAction
    index: Optional[int] = None

class BookSessionResponse(BaseModel):
    """Response model for an opened book session"""
    session_id: str
    book_id: str
    title: str
    lines: List[str]
    chapters: List[Chapter]
    total_lines: int
    total_chars: int
    initial_line_index: int

class ComicSessionResponse(BaseModel):
    """Response model for an opened comic session or a navigation step"""
    session_id: str
    comic_id: str
    images: List[ImageInfo] = Field(default_factory=list)
    current_index: int
    visible_indices: List[int]
    view_mode: ViewMode

class SessionStateResponse(BaseModel):
    """Response model for session updates"""
    session_id: str
    kind: ProgressKind
    entity_id: str
    closed: bool = False

class VideoOpenRequest(BaseModel):
    """Request model for opening a video; the player reports the length"""
    duration: int = Field(..., ge=0, description="Length in whole seconds")

class VideoSessionResponse(BaseModel):
    """Response model for an opened video session"""
    session_id: str
    video_id: str
    title: str
    url: str
    duration: int
    initial_position: int

class NavigationResponse(BaseModel):
    """Position of any session after a navigation step"""
    session_id: str
    kind: ProgressKind
    entity_id: str
    current_index: int
    visible_indices: List[int]
    view_mode: Optional[ViewMode] = None
