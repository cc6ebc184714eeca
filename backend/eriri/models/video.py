"""
Eriri Video Pydantic Models
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

class VideoItem(BaseModel):
    """Video item in list response"""
    id: str
    library_id: str
    title: str
    path: str
    size: int = 0
    created_at: Optional[datetime] = None
    url: str = ""
    percent: float = 0.0
    starred: bool = False
    deleted: bool = False

    class Config:
        """Pydantic config"""
        from_attributes = True

class VideoListResponse(BaseModel):
    """Response model for listing videos"""
    videos: List[VideoItem]
    total: int
