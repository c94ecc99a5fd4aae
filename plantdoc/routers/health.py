import logging
from fastapi import APIRouter

from plantdoc import __version__
from plantdoc.config import PLANTDOC_MODEL
from plantdoc.services import services
from plantdoc.services.sessions import session_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "PlantDoc",
        "version": __version__,
        "model": PLANTDOC_MODEL,
        "session_stats": session_store.stats(),
        "services": {
            "openai": bool(services.openai_client),
        }
    }
