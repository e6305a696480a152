import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI

from docshare.api.dependencies import attachment_service
from docshare.api.routes import chat
from docshare.core.config import settings
from docshare.db import check_database_health, init_models
from docshare.services.provider import SessionProvider
from docshare.storage import ObjectStaticFiles

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting application...")
    try:
        await init_models()
        await check_database_health()
        logger.info("Database health check passed - application ready")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        logger.error("Application startup aborted due to database issues")
        raise

    yield

    logger.info("Application shutting down...")
    await SessionProvider.close_all()


app = FastAPI(title="DocShare", lifespan=lifespan)

Path(settings.STORAGE_ROOT).mkdir(parents=True, exist_ok=True)
app.mount("/storage", ObjectStaticFiles(attachment_service), name="storage")

app.include_router(chat.chat_api_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}
