"""
Eriri Comic Pydantic Models
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

class ImageInfo(BaseModel):
    """One page image as returned by the image listing"""
    index: int
    filename: str
    path: str
    url: str
    thumbnail_url: str
    width: int = 0
    height: int = 0
    starred: bool = False
    deleted: bool = False

class FileTags(BaseModel):
    """Tag mutation; fields left as None are not touched"""
    starred: Optional[bool] = None
    deleted: Optional[bool] = None

class ComicItem(BaseModel):
    """Comic item in list response"""
    id: str
    library_id: str
    title: str
    path: str
    cover: Optional[str] = None
    page_count: Optional[int] = None
    created_at: Optional[datetime] = None
    percent: float = 0.0

    class Config:
        """Pydantic config"""
        from_attributes = True

class ComicListResponse(BaseModel):
    """Response model for listing comics"""
    comics: List[ComicItem]
    total: int

class ComicImagesResponse(BaseModel):
    """Response model for the images of a comic"""
    comic_id: str
    images: List[ImageInfo]
    total: int
