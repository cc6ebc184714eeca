"""
Eriri SQLite Database Connection
Library index, file tags and the progress blob share one database file
"""
import logging
import os
from typing import Iterator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from eriri.core.config import settings
from eriri.core.exceptions import DatabaseException
from eriri.db.models import Base

logger = logging.getLogger(__name__)

def _apply_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")  # blob writes run on worker threads
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()

def create_sqlite_engine(db_file: str) -> Engine:
    """
    Create an engine for a SQLite file, shared across threads
    Args:
        db_file: Path of the database file; its directory is created if missing
    Returns:
        Engine with the connection pragmas installed
    """
    db_dir = os.path.dirname(db_file)
    if db_dir: os.makedirs(db_dir, exist_ok=True)

    sqlite_engine = create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
        pool_pre_ping=True
    )
    event.listen(sqlite_engine, "connect", _apply_pragmas)
    return sqlite_engine

def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)

engine = create_sqlite_engine(settings.SQLITE_DB_FILE)
SessionLocal = create_session_factory(engine)

def get_db() -> Iterator[Session]:
    """Request scoped session for the API routes"""
    db = SessionLocal()
    try: yield db
    finally: db.close()

def initialise_db(bind: Engine = engine):
    """Create the library, tag and blob tables if they are missing"""
    try:
        Base.metadata.create_all(bind=bind)
        logger.info(f"Database ready at {bind.url.database}")
    except Exception as e:
        raise DatabaseException(f"Failed to create tables: {str(e)}")

def close_db_connection():
    try:
        engine.dispose()
        logger.info("Database engine disposed")
    except Exception as e:
        logger.error(f"Failed to dispose database engine: {str(e)}")
