"""
Intake API - Main Application Entry Point

Builds the FastAPI app: startup and shutdown of the database, Redis, the
blob store and the Telegram client; CORS; the /api/v1 routers; health and
(development only) debug endpoints.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from intake.api import api_router
from intake.core.config import settings
from intake.core.database import async_session_maker, close_db, init_db
from intake.core.logging import configure_logging
from intake.core.redis import close_redis, init_redis, redis_status
from intake.core.storage import LocalBlobStore
from intake.core.telegram import TelegramClient
from intake.modules.employment_applications.exceptions import (
    request_validation_exception_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: logging, Redis, database tables, blob store, messaging client.
    Shutdown: closes them in reverse order.
    """
    configure_logging(settings.log_level)
    logger.info(f"Starting Intake API in {settings.python_env} mode...")

    await init_redis()

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    app.state.blob_store = LocalBlobStore(settings.upload_dir, settings.max_upload_bytes)
    app.state.messaging_client = TelegramClient(
        settings.telegram_bot_token,
        settings.telegram_chat_id,
        timeout=settings.telegram_timeout_seconds,
    )
    if not settings.telegram_configured:
        logger.warning("Telegram not configured - operator notifications will only be logged")

    yield  # Application runs here

    logger.info("Shutting down Intake API...")
    await app.state.messaging_client.aclose()
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Intake API",
    description="Employment application intake and review API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Service banner."""
    return {
        "message": "Welcome to the Intake API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


if settings.is_development:

    @app.get("/debug/db", tags=["Debug"])
    async def debug_db():
        """Test database connection."""
        try:
            async with async_session_maker() as session:
                result = await session.execute(text("SELECT 1"))
                return {"database": "connected", "result": result.scalar()}
        except (SQLAlchemyError, OSError) as e:
            return {"database": "error", "message": str(e)}

    @app.get("/debug/redis", tags=["Debug"])
    async def debug_redis():
        """Test Redis connection."""
        return {"redis": await redis_status()}
