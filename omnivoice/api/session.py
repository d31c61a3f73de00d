"""Voice session endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from omnivoice.api.auth import require_auth
from omnivoice.core.dependencies import get_initiation_client
from omnivoice.core.errors import OmniVoiceError, UnknownProviderError
from omnivoice.services.initiation.client import SessionInitiationClient
from omnivoice.services.providers.models import SessionRequest, VoiceProvider

router = APIRouter(dependencies=[Depends(require_auth)])
logger = logging.getLogger(__name__)


@router.post("/session")
async def create_session(
    request: Request,
    body: SessionRequest,
    client: SessionInitiationClient = Depends(get_initiation_client),
):
    """
    Create a voice call with the selected provider.

    Returns the credentials the browser needs to open the live channel:
    ``{sessionId, dialId, dialToken}`` for Vogent, ``{joinUrl, callId}``
    for Vapi and Ultravox.
    """
    try:
        provider = VoiceProvider.parse(body.provider)
    except UnknownProviderError as e:
        logger.warning(f"[SESSION] Rejected unknown provider: {body.provider}")
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"[SESSION] Create requested - Provider: {provider}, "
        f"History: {len(body.messages or [])} messages, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    try:
        credentials = await client.initiate(provider, body.to_config())
    except OmniVoiceError as e:
        logger.error(
            f"[SESSION] Failed to create {provider} call - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.error(
            f"[SESSION] Failed to create {provider} call - Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to create voice call")

    logger.info(f"[SESSION] Created {provider} call - Call ID: {credentials.call_id}")
    return credentials.to_response()


@router.delete("/session", response_class=PlainTextResponse)
async def end_session(
    provider: Optional[str] = Query(None),
    callId: Optional[str] = Query(None),
    dialId: Optional[str] = Query(None),
    client: SessionInitiationClient = Depends(get_initiation_client),
):
    """Best-effort termination of a provider call."""
    if not provider:
        raise HTTPException(status_code=400, detail="Provider required")
    try:
        voice_provider = VoiceProvider.parse(provider)
    except UnknownProviderError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if voice_provider == VoiceProvider.VOGENT:
        if not dialId:
            raise HTTPException(status_code=400, detail="Dial ID required")
        call_id = dialId
    else:
        if not callId:
            raise HTTPException(status_code=400, detail="Call ID required")
        call_id = callId

    try:
        await client.terminate(voice_provider, call_id)
    except Exception as e:
        logger.error(
            f"[SESSION] Failed to end {voice_provider} call {call_id} - "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail="Failed to end call")

    logger.info(f"[SESSION] Ended {voice_provider} call {call_id}")
    return "Call ended"
