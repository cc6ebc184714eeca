"""
Eriri Tag Service - starred/deleted flags per file path
"""
import logging
from typing import Callable, Dict, Iterable, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from eriri.db.models import FileTag
from eriri.db.sqlite import SessionLocal
from eriri.models.comic import FileTags

logger = logging.getLogger(__name__)

class TagService:
    """Service for reading and updating file tags"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def set_tag(self, path: str, tags: FileTags) -> bool:
        """
        Update the flags given in tags, leaving the others untouched
        Args:
            path: File path
            tags: Flags to set
        Returns:
            True if the tags were stored
        """
        db = self.session_factory()
        try:
            tag = db.query(FileTag).filter(FileTag.path == path).first()
            if not tag:
                tag = FileTag(path=path, starred=False, deleted=False)
                db.add(tag)

            if tags.starred is not None: tag.starred = tags.starred
            if tags.deleted is not None: tag.deleted = tags.deleted

            db.commit()
            return True

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to set tags for {path}: {str(e)}")
            return False
        finally: db.close()

    def get_tags(self, paths: Iterable[str]) -> Dict[str, Tuple[bool, bool]]:
        """
        Get (starred, deleted) for each tagged path
        Args:
            paths: File paths to look up
        Returns:
            Mapping of path to flags, untagged paths are absent
        """
        paths = list(paths)
        if not paths: return {}

        db = self.session_factory()
        try:
            rows = db.query(FileTag).filter(FileTag.path.in_(paths)).all()
            return {row.path: (bool(row.starred), bool(row.deleted)) for row in rows}
        except SQLAlchemyError as e:
            logger.error(f"Failed to read tags: {str(e)}")
            return {}
        finally: db.close()

tag_service = TagService()
