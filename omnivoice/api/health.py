"""Health check endpoint."""
import logging

from fastapi import APIRouter, Request

from omnivoice.core import config

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Liveness plus which providers can currently start a call."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    return {
        "status": "healthy",
        "providers": config.settings.configured_providers(),
    }
