# PlantDoc web service
import os
import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from starlette.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from plantdoc import __version__
from plantdoc.config import (
    OPENAI_API_KEY,
    PLANTDOC_MODEL,
    SECRET_KEY,
    RUN_BACKGROUND_TASKS,
    PORT,
)
from plantdoc.routers import analyze, health, pages
from plantdoc.services.sessions import session_store
from plantdoc.utils.rate_limiter import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")

# ============================================================================#
# Lifespan Events
# ============================================================================#

async def periodic_cleanup():
    """Periodic cleanup task"""
    while True:
        try:
            await asyncio.sleep(300)  # Run every 5 minutes
            logger.info("Running periodic cleanup...")
            session_store.cleanup_expired()
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Error in cleanup task: {e}")
            await asyncio.sleep(60)


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    # Startup
    logger.info("=" * 60)
    logger.info("Starting PlantDoc - plant identification & diagnosis")
    logger.info(f"Model API: {'✓' if OPENAI_API_KEY else '✗'} ({PLANTDOC_MODEL})")
    logger.info("=" * 60)

    cleanup_task = None
    if RUN_BACKGROUND_TASKS:
        logger.info("Starting background tasks...")
        cleanup_task = asyncio.create_task(periodic_cleanup())
    else:
        logger.info("RUN_BACKGROUND_TASKS not set or false - skipping background tasks (serverless mode)")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")
    if cleanup_task:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass

    session_store.clear()
    logger.info("All sessions cleared")


# Initialize FastAPI app
app = FastAPI(
    title="PlantDoc",
    description="Identify plants, diagnose disease and get treatment advice from a photo",
    version=__version__,
    lifespan=lifespan
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Session cookie identifies the analyzer session
app.add_middleware(SessionMiddleware, secret_key=SECRET_KEY)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

app.include_router(health.router)
app.include_router(analyze.router)
app.include_router(pages.router)


if __name__ == "__main__":
    uvicorn.run("plantdoc.main:app", host="0.0.0.0", port=PORT)
