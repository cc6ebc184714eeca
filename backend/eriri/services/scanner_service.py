"""
Eriri Scanner Service - library classification, directory scanning and image listing
"""
import asyncio
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote
from PIL import Image, UnidentifiedImageError
from eriri.core.config import settings
from eriri.core.exceptions import FetchError, LibraryScanException
from eriri.models.comic import ImageInfo
from eriri.models.library import LibraryType
from eriri.services.tag_service import TagService, tag_service

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")

def natural_sort_key(name: str) -> Tuple[Tuple[int, Any], ...]:
    """Sort key comparing digit runs numerically and text case-insensitively"""
    parts = _DIGITS.split(name)
    return tuple((0, int(part)) if part.isdigit() else (1, part.casefold()) for part in parts if part)

def _has_extension(name: str, extensions: List[str]) -> bool:
    return name.lower().rsplit(".", 1)[-1] in extensions if "." in name else False

def _created_at(path: Path) -> datetime:
    stat = path.stat()
    timestamp = getattr(stat, "st_birthtime", stat.st_mtime)
    return datetime.fromtimestamp(timestamp, timezone.utc)

def _sorted_entries(path: Path) -> List[Path]:
    return sorted(path.iterdir(), key=lambda entry: natural_sort_key(entry.name))

class ScannerService:
    """Service for scanning library roots and listing comic images"""

    def __init__(self, tags: TagService = tag_service):
        self.tags = tags
        self.book_extensions = [ext.lower() for ext in settings.BOOK_EXTENSIONS]
        self.image_extensions = [ext.lower() for ext in settings.IMAGE_EXTENSIONS]
        self.video_extensions = [ext.lower() for ext in settings.VIDEO_EXTENSIONS]

    def _library_root(self, library_path: str) -> Path:
        root = Path(library_path)
        if not root.is_dir():
            raise LibraryScanException(f"Library path {library_path} is not a directory")
        return root

    def detect_library_type(self, library_path: str) -> LibraryType:
        """
        A video file at the root makes a video library; otherwise a library whose
        first sub-directory holds a text file is a book library
        Args:
            library_path: Library root
        Returns:
            Detected library type
        """
        root = self._library_root(library_path)
        try:
            entries = _sorted_entries(root)
            if any(entry.is_file() and _has_extension(entry.name, self.video_extensions) for entry in entries):
                return LibraryType.VIDEO

            first_dir = next((entry for entry in entries if entry.is_dir()), None)
            if first_dir is None: return LibraryType.COMIC

            for entry in first_dir.iterdir():
                if entry.is_file() and _has_extension(entry.name, self.book_extensions): return LibraryType.BOOK
        except OSError as e:
            raise LibraryScanException(f"Failed to read library {library_path}: {str(e)}") from e

        return LibraryType.COMIC

    def scan_book_library(self, library_path: str) -> List[Dict[str, Any]]:
        """
        Scan author directories for text books
        Args:
            library_path: Library root
        Returns:
            Book dicts with author, title, path, size and created_at
        """
        root = self._library_root(library_path)
        books = []

        for author_dir in _sorted_entries(root):
            if not author_dir.is_dir(): continue
            try:
                for entry in _sorted_entries(author_dir):
                    if not entry.is_file() or not _has_extension(entry.name, self.book_extensions): continue
                    books.append({
                        "author": author_dir.name,
                        "title": entry.stem,
                        "path": str(entry),
                        "size": entry.stat().st_size,
                        "created_at": _created_at(entry),
                    })
            except OSError as e:
                logger.error(f"Failed to scan author {author_dir.name}: {str(e)}")

        logger.info(f"Scanned {len(books)} books in {library_path}")
        return books

    def scan_comic_library(self, library_path: str) -> List[Dict[str, Any]]:
        """
        Scan comic directories; the first image in natural order is the cover
        Args:
            library_path: Library root
        Returns:
            Comic dicts with title, path, cover and created_at
        """
        root = self._library_root(library_path)
        comics = []

        for comic_dir in _sorted_entries(root):
            if not comic_dir.is_dir(): continue
            cover = None
            created_at = None
            try:
                created_at = _created_at(comic_dir)
                first_image = next(
                    (entry for entry in _sorted_entries(comic_dir)
                     if entry.is_file() and _has_extension(entry.name, self.image_extensions)),
                    None,
                )
                if first_image is not None: cover = str(first_image)
            except OSError as e:
                logger.error(f"Failed to scan comic {comic_dir.name}: {str(e)}")

            comics.append({
                "title": comic_dir.name,
                "path": str(comic_dir),
                "cover": cover,
                "created_at": created_at,
            })

        logger.info(f"Scanned {len(comics)} comics in {library_path}")
        return comics

    def scan_video_library(self, library_path: str) -> List[Dict[str, Any]]:
        """
        Scan video files at the library root, skipping hidden files
        Args:
            library_path: Library root
        Returns:
            Video dicts with title, path, size and created_at
        """
        root = self._library_root(library_path)
        videos = []

        for entry in _sorted_entries(root):
            if entry.name.startswith(".") or not entry.is_file(): continue
            if not _has_extension(entry.name, self.video_extensions): continue
            try:
                videos.append({
                    "title": entry.stem,
                    "path": str(entry),
                    "size": entry.stat().st_size,
                    "created_at": _created_at(entry),
                })
            except OSError as e:
                logger.error(f"Failed to scan video {entry.name}: {str(e)}")

        logger.info(f"Scanned {len(videos)} videos in {library_path}")
        return videos

    def _read_size(self, path: Path) -> Tuple[int, int]:
        try:
            with Image.open(path) as img:
                return img.size
        except (OSError, UnidentifiedImageError) as e:
            logger.warning(f"Could not read image size of {path}: {str(e)}")
            return 0, 0

    def _list_images(self, comic_path: str, url_prefix: Optional[str]) -> List[ImageInfo]:
        root = Path(comic_path)
        try:
            files = [
                entry for entry in _sorted_entries(root)
                if entry.is_file() and _has_extension(entry.name, self.image_extensions)
            ]
        except OSError as e:
            raise FetchError(f"Failed to list images in {comic_path}: {str(e)}") from e

        tags = self.tags.get_tags(str(entry) for entry in files)
        images = []
        for index, entry in enumerate(files):
            width, height = self._read_size(entry)
            starred, deleted = tags.get(str(entry), (False, False))
            url = f"{url_prefix}/{quote(entry.name)}" if url_prefix else entry.resolve().as_uri()
            images.append(ImageInfo(
                index=index,
                filename=entry.name,
                path=str(entry),
                url=url,
                thumbnail_url=url,
                width=width,
                height=height,
                starred=starred,
                deleted=deleted,
            ))

        return images

    async def list_images(self, comic_path: str, url_prefix: Optional[str] = None) -> List[ImageInfo]:
        """
        List the page images of a comic directory with pixel sizes and tags
        Args:
            comic_path: Comic directory
            url_prefix: Base URL the images are served under, file URIs if None
        Returns:
            Images in natural filename order
        Raises:
            FetchError: if the directory cannot be read
        """
        if not os.path.isdir(comic_path):
            raise FetchError(f"Comic directory {comic_path} not found")
        return await asyncio.to_thread(self._list_images, comic_path, url_prefix)

scanner_service = ScannerService()
