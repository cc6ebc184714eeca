"""
Eriri Library Pydantic Models
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

class LibraryType(str, Enum):
    """Kinds of library roots"""
    BOOK = "book"
    COMIC = "comic"
    VIDEO = "video"

class LibraryCreate(BaseModel):
    """Request model for importing a library"""
    path: str = Field(..., description="Absolute path of the library root")
    name: Optional[str] = Field(None, description="Display name, defaults to the directory name")

class LibraryResponse(BaseModel):
    """Response model for a library"""
    id: str
    name: str
    path: str
    type: LibraryType
    created_at: Optional[datetime] = None
    item_count: int = 0

class LibraryListResponse(BaseModel):
    """Response model for listing libraries"""
    libraries: List[LibraryResponse]
    total: int
