"""Session initiation against the three voice platforms.

Every call here runs on the server: it holds the provider secrets, makes one
HTTPS request, and returns only the credentials the browser needs to open
the live channel. There are no retries; the caller decides.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from omnivoice.core.config import Settings, settings as default_settings
from omnivoice.core.errors import AuthError, ConfigurationError, UpstreamError
from omnivoice.services.providers.models import (
    ChatMessage,
    Credentials,
    DialCredentials,
    JoinCredentials,
    SessionConfig,
    VoiceProvider,
)
from omnivoice.services.providers.prompts import (
    DEFAULT_LANGUAGE_HINT,
    DEFAULT_TEMPERATURE,
    DEFAULT_VOICE,
    FIRST_MESSAGE,
    resolve_system_prompt,
)
from omnivoice.services.tools.base import ToolDefinition
from omnivoice.services.tools.builtin import BUILTIN_DEFINITIONS

logger = logging.getLogger(__name__)

VOGENT_DIALS_URL = "https://api.vogent.ai/api/dials"
VAPI_WEB_CALL_URL = "https://api.vapi.ai/call/web"
VAPI_CALL_URL = "https://api.vapi.ai/call/{call_id}"
ULTRAVOX_CALLS_URL = "https://api.ultravox.ai/api/calls"
ULTRAVOX_CALL_URL = "https://api.ultravox.ai/api/calls/{call_id}"

VAPI_DEFAULT_MODEL = "gpt-4o"
ULTRAVOX_DEFAULT_MODEL = "fixie-ai/ultravox-70B"

# Not found, gone, too early: the call is already over or never started.
TERMINATE_TOLERATED_STATUSES = frozenset({404, 410, 425})

VAPI_VOICE_IDS = {
    "Mark": "mark",
    "Jessica": "jessica",
    "Sarah": "sarah",
    "John": "john",
}


def vapi_voice_id(voice_name: Optional[str]) -> str:
    """Map a display voice name to its 11labs voice id."""
    return VAPI_VOICE_IDS.get(voice_name or DEFAULT_VOICE, "mark")


def format_messages_for_vapi(messages: List[ChatMessage]) -> List[Dict[str, str]]:
    """Convert chat history to Vapi model messages, dropping messages with no text."""
    formatted = []
    for message in messages:
        text = message.first_text()
        if not text:
            continue
        if message.role == "user":
            role = "user"
        elif message.role == "system":
            role = "system"
        else:
            role = "assistant"
        formatted.append({"role": role, "content": text})
    return formatted


def format_messages_for_ultravox(messages: List[ChatMessage]) -> List[Dict[str, str]]:
    """Convert chat history to Ultravox initial messages, dropping messages with no text."""
    formatted = []
    for message in messages:
        text = message.first_text()
        if not text:
            continue
        role = "user" if message.role == "user" else "assistant"
        formatted.append({"role": role, "content": text})
    return formatted


class SessionInitiationClient:
    """Creates and ends provider calls using server-held secrets."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        tools: Optional[List[ToolDefinition]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = config or default_settings
        self.tools = list(tools) if tools is not None else list(BUILTIN_DEFINITIONS)
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.settings.request_timeout,
        )

    def _system_prompt(self, config: SessionConfig) -> str:
        return resolve_system_prompt(config.system_prompt, self.settings.default_system_prompt)

    @staticmethod
    def _require_secret(value: Optional[str], name: str) -> str:
        if not value:
            raise AuthError(f"{name} is not configured")
        return value

    async def initiate(
        self, provider: VoiceProvider, config: Optional[SessionConfig] = None
    ) -> Credentials:
        """
        Create a remote call for the given provider.

        Args:
            provider: Voice platform to use
            config: Prompt, voice, model, temperature and history for the call

        Returns:
            DialCredentials for Vogent, JoinCredentials otherwise

        Raises:
            AuthError: The provider secret is missing
            ConfigurationError: A required setting (agent id) is missing
            UpstreamError: The provider rejected the request
        """
        config = config or SessionConfig()
        logger.info(f"[INITIATE] Creating {provider} call")

        if provider == VoiceProvider.VOGENT:
            return await self.create_vogent_dial(config)
        if provider == VoiceProvider.VAPI:
            return await self.create_vapi_call(config)
        if provider == VoiceProvider.ULTRAVOX:
            return await self.create_ultravox_call(config)
        raise ConfigurationError(f"No initiation flow for provider {provider}")

    async def terminate(self, provider: VoiceProvider, call_id: str) -> None:
        """
        End a remote call.

        Already-ended calls (404, 410, 425) count as success.

        Raises:
            AuthError: The provider secret is missing
            UpstreamError: Any other non-2xx response
        """
        if provider == VoiceProvider.VOGENT:
            # Vogent calls end when the client hangs up.
            logger.debug(f"[TERMINATE] Nothing to do server-side for Vogent dial {call_id}")
            return
        if provider == VoiceProvider.VAPI:
            await self.end_vapi_call(call_id)
            return
        if provider == VoiceProvider.ULTRAVOX:
            await self.end_ultravox_call(call_id)
            return
        raise ConfigurationError(f"No termination flow for provider {provider}")

    async def _post_json(
        self, label: str, url: str, headers: Dict[str, str], body: Dict[str, Any]
    ) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.post(url, headers=headers, json=body)

        if not response.is_success:
            logger.error(
                f"[INITIATE] {label} call creation failed - "
                f"Status: {response.status_code}, Body: {response.text[:500]}"
            )
            raise UpstreamError(
                f"Failed to create {label} call: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    async def _delete(self, label: str, url: str, headers: Dict[str, str], call_id: str) -> None:
        async with self._client() as client:
            response = await client.delete(url, headers=headers)

        if response.is_success:
            logger.info(f"[TERMINATE] Ended {label} call {call_id}")
            return
        if response.status_code in TERMINATE_TOLERATED_STATUSES:
            logger.info(
                f"[TERMINATE] {label} call {call_id} already gone "
                f"(status {response.status_code})"
            )
            return

        logger.error(f"[TERMINATE] Failed to end {label} call {call_id}: {response.status_code}")
        raise UpstreamError(
            f"Failed to end {label} call: {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    async def create_vogent_dial(self, config: SessionConfig) -> DialCredentials:
        """Start a browser dial against the pre-configured Vogent agent."""
        api_key = self._require_secret(
            self.settings.vogent_public_api_key, "VOGENT_PUBLIC_API_KEY"
        )
        agent_id = self.settings.vogent_call_agent_id
        if not agent_id:
            raise ConfigurationError("VOGENT_CALL_AGENT_ID is not configured")

        data = await self._post_json(
            "Vogent",
            VOGENT_DIALS_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            body={"callAgentId": agent_id, "browserCall": True},
        )
        return DialCredentials(
            session_id=data.get("sessionId", ""),
            dial_id=data.get("dialId", ""),
            dial_token=data.get("dialToken", ""),
        )

    def build_vapi_payload(self, config: SessionConfig) -> Dict[str, Any]:
        """Build the Vapi web-call body: a saved assistant id or an inline assistant."""
        if self.settings.vapi_assistant_id and not config.system_prompt:
            return {"assistantId": self.settings.vapi_assistant_id}

        system_prompt = self._system_prompt(config)
        assistant: Dict[str, Any] = {
            "model": {
                "provider": "openai",
                "model": config.model or VAPI_DEFAULT_MODEL,
                "temperature": config.temperature or DEFAULT_TEMPERATURE,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    *format_messages_for_vapi(config.messages),
                ],
            },
            "voice": {
                "provider": "11labs",
                "voiceId": vapi_voice_id(config.voice),
            },
            "firstMessage": FIRST_MESSAGE,
        }
        if self.settings.vapi_server_url:
            assistant["serverUrl"] = self.settings.vapi_server_url
            assistant["serverUrlSecret"] = self.settings.vapi_server_url_secret
        return {"assistant": assistant}

    async def create_vapi_call(self, config: SessionConfig) -> JoinCredentials:
        """Create a Vapi web call."""
        api_key = self._require_secret(self.settings.vapi_api_key, "VAPI_API_KEY")
        data = await self._post_json(
            "Vapi",
            VAPI_WEB_CALL_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            body=self.build_vapi_payload(config),
        )
        return JoinCredentials(
            join_url=data.get("webCallUrl") or "",
            call_id=data.get("id") or "",
        )

    def offered_tools(self, config: SessionConfig) -> List[ToolDefinition]:
        """Definitions to offer the model, limited to the tools the caller registered."""
        if config.tool_names is None:
            return list(self.tools)
        registered = set(config.tool_names)
        return [tool for tool in self.tools if tool.name in registered]

    def build_ultravox_payload(self, config: SessionConfig) -> Dict[str, Any]:
        """Build the Ultravox call body, offering the caller's client-side tools."""
        payload: Dict[str, Any] = {
            "systemPrompt": self._system_prompt(config),
            "model": config.model or ULTRAVOX_DEFAULT_MODEL,
            "voice": config.voice or DEFAULT_VOICE,
            "temperature": config.temperature or DEFAULT_TEMPERATURE,
            "languageHint": DEFAULT_LANGUAGE_HINT,
            "selectedTools": [tool.to_ultravox_schema() for tool in self.offered_tools(config)],
        }
        initial_messages = format_messages_for_ultravox(config.messages)
        if initial_messages:
            payload["initialMessages"] = initial_messages
        return payload

    async def create_ultravox_call(self, config: SessionConfig) -> JoinCredentials:
        """Create an Ultravox call."""
        api_key = self._require_secret(self.settings.ultravox_api_key, "ULTRAVOX_API_KEY")
        data = await self._post_json(
            "Ultravox",
            ULTRAVOX_CALLS_URL,
            headers={"X-API-Key": api_key},
            body=self.build_ultravox_payload(config),
        )
        return JoinCredentials(
            join_url=data.get("joinUrl") or "",
            call_id=data.get("callId") or "",
        )

    async def end_vapi_call(self, call_id: str) -> None:
        api_key = self._require_secret(self.settings.vapi_api_key, "VAPI_API_KEY")
        await self._delete(
            "Vapi",
            VAPI_CALL_URL.format(call_id=call_id),
            headers={"Authorization": f"Bearer {api_key}"},
            call_id=call_id,
        )

    async def end_ultravox_call(self, call_id: str) -> None:
        api_key = self._require_secret(self.settings.ultravox_api_key, "ULTRAVOX_API_KEY")
        await self._delete(
            "Ultravox",
            ULTRAVOX_CALL_URL.format(call_id=call_id),
            headers={"X-API-Key": api_key},
            call_id=call_id,
        )
