from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from tvepg_sync.config import settings, setup_logging
from tvepg_sync.services.scheduler_service import sync_scheduler

from tvepg_sync.routers import main_router


setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting tvepg-sync service...")
    settings.log_summary()

    try:
        sync_scheduler.start()
        logger.info("tvepg-sync service started successfully")
    except Exception as e:
        logger.error(f"Failed to start tvepg-sync service: {e}", exc_info=True)
        raise

    yield

    logger.info("Shutting down tvepg-sync service...")

    try:
        sync_scheduler.shutdown()
    except Exception as e:
        logger.error(f"Error during scheduler shutdown: {e}", exc_info=True)

    logger.info("tvepg-sync service stopped")


app = FastAPI(
    title="tvepg-sync",
    version="0.1.0",
    lifespan=lifespan
)

app.include_router(main_router)
