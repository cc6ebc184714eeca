"""
Eriri Comic Service - cached image listings and image tag updates
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from eriri.core.config import settings
from eriri.core.exceptions import ComicNotFoundException, ImageNotFoundException
from eriri.db.models import Comic
from eriri.models.comic import FileTags, ImageInfo
from eriri.services.cache_service import ResultCache
from eriri.services.scanner_service import ScannerService, scanner_service
from eriri.services.tag_service import TagService, tag_service

logger = logging.getLogger(__name__)

class ComicService:
    """Service for comic image listings; repeated listings are answered from the cache"""

    def __init__(
        self,
        image_cache: ResultCache[List[ImageInfo]],
        scanner: ScannerService = scanner_service,
        tags: TagService = tag_service,
    ):
        self.image_cache = image_cache
        self.scanner = scanner
        self.tags = tags
        logger.info(f"Comic service initialised with image cache size: {image_cache.max_size}")

    def get_comic(self, db: Session, comic_id: str) -> Comic:
        comic = db.query(Comic).filter(Comic.id == comic_id).first()
        if not comic: raise ComicNotFoundException(comic_id)
        return comic

    async def get_comic_images(self, db: Session, comic_id: str) -> List[ImageInfo]:
        """
        Get the images of a comic
        Args:
            comic_id: ID of the comic
            db: Database session
        Returns:
            Images in page order
        Raises:
            ComicNotFoundException: if the comic is unknown
            FetchError: if listing fails; failures are not cached
        """
        cached = self.image_cache.get(comic_id)
        if cached is not None: return cached

        comic = self.get_comic(db, comic_id)
        images = await self.scanner.list_images(comic.path, url_prefix=f"/api/comics/{comic_id}/images")

        if comic.page_count != len(images):
            comic.page_count = len(images)
            db.commit()

        self.image_cache.put(comic_id, images)
        logger.info(f"Listed {len(images)} images for comic {comic_id}")
        return images

    async def get_image(self, db: Session, comic_id: str, filename: str) -> ImageInfo:
        images = await self.get_comic_images(db, comic_id)
        image = next((img for img in images if img.filename == filename), None)
        if image is None: raise ImageNotFoundException(comic_id, filename)
        return image

    async def update_image_tags(self, db: Session, comic_id: str, filename: str, tags: FileTags) -> Optional[ImageInfo]:
        """
        Tag one image of a comic; the cached listing is patched only when the tag write succeeds
        Args:
            db: Database session
            comic_id: ID of the comic
            filename: Image file name
            tags: Flags to set
        Returns:
            The updated image, or None if the tags could not be stored
        """
        image = await self.get_image(db, comic_id, filename)

        if not self.tags.set_tag(image.path, tags): return None

        cached = self.image_cache.peek(comic_id)
        for cached_image in cached or []:
            if cached_image.filename != filename: continue
            if tags.starred is not None: cached_image.starred = tags.starred
            if tags.deleted is not None: cached_image.deleted = tags.deleted

        if tags.starred is not None: image.starred = tags.starred
        if tags.deleted is not None: image.deleted = tags.deleted
        return image

    def invalidate(self, comic_id: str) -> None:
        self.image_cache.remove(comic_id)

comic_service = ComicService(ResultCache(settings.IMAGE_CACHE_SIZE, name="comic-images"))
