"""
Eriri SQLAlchemy Database Models
"""
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

class Library(Base):
    """Library model representing an imported library root"""
    __tablename__ = "libraries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    path = Column(String, nullable=False, unique=True)
    type = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    books = relationship("Book", back_populates="library", cascade="all, delete-orphan")
    comics = relationship("Comic", back_populates="library", cascade="all, delete-orphan")
    videos = relationship("Video", back_populates="library", cascade="all, delete-orphan")

class Book(Base):
    """Book model representing a plain text book inside an author directory"""
    __tablename__ = "books"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    library_id = Column(String, ForeignKey("libraries.id", ondelete="CASCADE"), nullable=False)
    author = Column(String, nullable=False)
    title = Column(String, nullable=False)
    path = Column(String, nullable=False)
    size = Column(Integer, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    library = relationship("Library", back_populates="books")

class Comic(Base):
    """Comic model representing a directory of page images"""
    __tablename__ = "comics"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    library_id = Column(String, ForeignKey("libraries.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    path = Column(String, nullable=False)
    cover = Column(String, nullable=True)
    page_count = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    library = relationship("Library", back_populates="comics")

class Video(Base):
    """Video model representing a single video file at the library root"""
    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    library_id = Column(String, ForeignKey("libraries.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    path = Column(String, nullable=False)
    size = Column(Integer, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    library = relationship("Library", back_populates="videos")

class FileTag(Base):
    """Starred/deleted flags attached to a file path"""
    __tablename__ = "file_tags"

    path = Column(String, primary_key=True)
    starred = Column(Boolean, default=False)
    deleted = Column(Boolean, default=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

class StorageBlob(Base):
    """Opaque serialized value stored under a logical key"""
    __tablename__ = "storage_blobs"

    key = Column(String, primary_key=True)
    data = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
