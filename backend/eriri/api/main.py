"""
Eriri FastAPI Application Main
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from eriri.db.sqlite import initialise_db, close_db_connection
from eriri.api.routes import books, comics, libraries, progress, reader, videos
from eriri.core.config import settings
from eriri.services.progress_store import progress_store
from eriri.services.session_service import session_manager

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

initialise_db()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} with timings {settings.get_timing_config()}")
    await progress_store.load()
    progress_store.storage.register_teardown()
    try: yield
    finally:
        session_manager.close_all()
        if progress_store.storage.has_pending: logger.info("Writing pending progress before shutdown")
        await progress_store.storage.flush()
        close_db_connection()
        logger.info(f"{settings.APP_NAME} stopped")

app = FastAPI(
    title="Eriri API",
    description="Eriri media library reader API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(libraries.router, prefix="/api/libraries", tags=["Libraries"])
app.include_router(books.router, prefix="/api/books", tags=["Books"])
app.include_router(comics.router, prefix="/api/comics", tags=["Comics"])
app.include_router(videos.router, prefix="/api/videos", tags=["Videos"])
app.include_router(progress.router, prefix="/api/progress", tags=["Reading Progress"])
app.include_router(reader.router, prefix="/api/reader", tags=["Reader Sessions"])
