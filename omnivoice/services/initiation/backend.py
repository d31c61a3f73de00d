"""HTTP client for the browser-side half of a voice session.

Adapters and the tool executor talk to this service's own /session and
/search endpoints through this client. It offers the same initiate/terminate
contract as SessionInitiationClient, so an adapter can use either one.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from omnivoice.core.config import settings
from omnivoice.core.errors import AuthError, UpstreamError
from omnivoice.services.providers.models import (
    Credentials,
    SessionConfig,
    VoiceProvider,
    credentials_from_response,
)

logger = logging.getLogger(__name__)


class BackendClient:
    """Calls /session and /search on the omnivoice server."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        cookies: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.cookies = cookies or {}
        self._transport = transport
        self.timeout = timeout or settings.request_timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            cookies=self.cookies,
            transport=self._transport,
            timeout=self.timeout,
        )

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            detail = response.json().get("detail")
        except (ValueError, AttributeError):
            detail = None
        return str(detail) if detail else response.text

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        detail = self._error_detail(response)
        logger.warning(f"[BACKEND] {action} failed - Status: {response.status_code}, Detail: {detail[:200]}")
        if response.status_code == 401:
            raise AuthError(f"{action}: not authenticated")
        raise UpstreamError(
            detail or f"{action} failed",
            status_code=response.status_code,
            body=response.text,
        )

    async def initiate(
        self, provider: VoiceProvider, config: Optional[SessionConfig] = None
    ) -> Credentials:
        """POST /session and return the provider credentials."""
        config = config or SessionConfig()
        body: Dict[str, Any] = {
            "provider": provider.value,
            "systemPrompt": config.system_prompt,
            "voice": config.voice,
            "model": config.model,
            "temperature": config.temperature,
            "messages": [m.model_dump() for m in config.messages],
            "tools": config.tool_names,
        }
        async with self._client() as client:
            response = await client.post("/session", json=body)
        self._raise_for_status(response, "Create session")
        return credentials_from_response(provider, response.json())

    async def terminate(self, provider: VoiceProvider, call_id: str) -> None:
        """DELETE /session for the given call."""
        id_param = "dialId" if provider == VoiceProvider.VOGENT else "callId"
        async with self._client() as client:
            response = await client.delete(
                "/session", params={"provider": provider.value, id_param: call_id}
            )
        self._raise_for_status(response, "End session")

    async def search(self, query: str) -> Dict[str, Any]:
        """POST /search and return ``{summary, results}``."""
        async with self._client() as client:
            response = await client.post("/search", json={"query": query})
        self._raise_for_status(response, "Search")
        return response.json()
