"""Ultravox adapter (real-time session with client-side tools)."""
import logging
from typing import Any, Callable, Dict

from omnivoice.services.normalize.transcript import field_of
from omnivoice.services.providers.models import Credentials, SessionConfig, VoiceProvider
from omnivoice.services.session.adapters.base import ProviderSessionAdapter, maybe_await
from omnivoice.services.session.models import ToolInvocation
from omnivoice.services.tools.executor import ToolExecutor

logger = logging.getLogger(__name__)

TOOL_INVOCATION_MESSAGE = "client_tool_invocation"


class UltravoxSessionAdapter(ProviderSessionAdapter):
    """
    Drives an Ultravox session.

    Every tool in the executor is registered on the session before
    ``join_call``, and initiation offers the model only those same tools,
    so it can never reach an unregistered one. The session exposes its full
    transcript array on every ``transcripts`` event and that array replaces
    the local copy as-is.
    """

    provider = VoiceProvider.ULTRAVOX

    def __init__(self, *args: Any, tools: ToolExecutor, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.tools = tools
        self._listeners: Dict[str, Callable[..., None]] = {}

    def _session_config(self) -> SessionConfig:
        # Offer the model exactly the tools that _bind will register
        names = [definition.name for definition in self.tools.definitions()]
        return self.config.model_copy(update={"tool_names": names})

    def _bind(self, session: Any, generation: int) -> None:
        for name in self.tools.names():
            session.register_tool_implementation(name, self.tools.handler_for(name))
        logger.info(f"[ULTRAVOX] Registered {len(self.tools)} client tools")

        listeners = {
            "status": self._guard(session, generation, lambda *_: self._handle_status(session.status)),
            "transcripts": self._guard(
                session, generation, lambda *_: self._apply_transcript(session.transcripts)
            ),
            "experimentalMessage": self._guard(session, generation, self._on_experimental_message),
        }
        for event, listener in listeners.items():
            session.add_event_listener(event, listener)
        self._listeners = listeners

    def _unbind(self, session: Any) -> None:
        listeners, self._listeners = self._listeners, {}
        for event, listener in listeners.items():
            session.remove_event_listener(event, listener)

    async def _open(self, session: Any, credentials: Credentials) -> None:
        await maybe_await(session.join_call(credentials.join_url))

    async def _close(self, session: Any) -> None:
        await maybe_await(session.leave_call())

    async def _toggle_mute(self, session: Any) -> bool:
        if session.is_mic_muted:
            await maybe_await(session.unmute_mic())
            return False
        await maybe_await(session.mute_mic())
        return True

    def _on_experimental_message(self, event: Any = None) -> None:
        message = field_of(event, "message")
        if field_of(message, "type") != TOOL_INVOCATION_MESSAGE:
            return
        self._observe_tool_call(
            ToolInvocation(
                tool_name=field_of(message, "toolName") or "",
                parameters=field_of(message, "parameters") or {},
                invocation_id=field_of(message, "invocationId") or "",
            )
        )
