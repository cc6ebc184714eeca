"""
Eriri Application Configuration
"""
import os
from typing import Dict, Any, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Application settings"""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    APP_NAME: str = "Eriri"
    LOG_LEVEL: str = "INFO"

    # db paths
    DATA_DIR: str = "data"
    SQLITE_DB_FILE: str = "data/eriri.db"

    # key under which the progress maps are stored as one JSON document
    PROGRESS_STORAGE_KEY: str = "eriri-progress-storage"

    # viewport events are batched into one progress write per window
    PROGRESS_THROTTLE_MS: int = 300
    # quiet period before a pending value is written to the blob store
    STORAGE_DEBOUNCE_MS: int = 2000

    IMAGE_CACHE_SIZE: int = 20

    # slack in pixels when two scaled pages are compared to the container width
    PAIRING_TOLERANCE: float = 1.0

    BOOK_EXTENSIONS: List[str] = ["txt"]
    IMAGE_EXTENSIONS: List[str] = ["jpg", "jpeg", "png", "webp", "gif"]
    VIDEO_EXTENSIONS: List[str] = ["mp4", "m4v", "mov", "webm", "mkv"]

    @field_validator("DATA_DIR")
    @classmethod
    def create_directories(cls, directory_path):
        """Ensure directories exist"""
        os.makedirs(directory_path, exist_ok=True)
        return directory_path

    def get_timing_config(self) -> Dict[str, Any]:
        """Return throttle/debounce configuration dictionary"""
        return {
            "progress_throttle_ms": self.PROGRESS_THROTTLE_MS,
            "storage_debounce_ms": self.STORAGE_DEBOUNCE_MS,
        }

settings = Settings()

#  all dirs exist
os.makedirs(settings.DATA_DIR, exist_ok=True)
