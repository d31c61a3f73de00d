"""Vapi adapter (dynamic assistant)."""
import logging
from functools import partial
from typing import Any, Callable, Dict

from omnivoice.core.errors import is_benign_termination
from omnivoice.services.normalize.transcript import field_of
from omnivoice.services.providers.models import Credentials, VoiceProvider
from omnivoice.services.session.adapters.base import ProviderSessionAdapter, maybe_await
from omnivoice.services.session.models import ToolInvocation

logger = logging.getLogger(__name__)

STATUS_EVENTS = ("call-start", "call-end", "speech-start", "speech-end")


def error_message(error: Any) -> str:
    """Dig the message out of a Vapi error payload."""
    if error is None:
        return ""
    if isinstance(error, str):
        return error
    message = field_of(error, "message")
    if message:
        return str(message)
    nested = field_of(error, "error")
    if nested is not None:
        return str(field_of(nested, "message") or "")
    return ""


class VapiSessionAdapter(ProviderSessionAdapter):
    """
    Drives a Vapi web call.

    Status arrives as event names (call-start, speech-start, ...), transcripts
    and function calls arrive as ``message`` events. Only final transcripts
    are appended. "Meeting ended" errors are how Vapi reports a normal
    hangup and are never surfaced.
    """

    provider = VoiceProvider.VAPI

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._listeners: Dict[str, Callable[..., None]] = {}

    def _bind(self, vapi: Any, generation: int) -> None:
        listeners = {
            event: self._guard(vapi, generation, partial(self._on_status_event, event))
            for event in STATUS_EVENTS
        }
        listeners["message"] = self._guard(vapi, generation, self._on_message)
        listeners["error"] = self._guard(vapi, generation, self._on_error)
        for event, listener in listeners.items():
            vapi.on(event, listener)
        self._listeners = listeners

    def _unbind(self, vapi: Any) -> None:
        listeners, self._listeners = self._listeners, {}
        for event, listener in listeners.items():
            vapi.off(event, listener)

    async def _open(self, vapi: Any, credentials: Credentials) -> None:
        await maybe_await(vapi.start(credentials.join_url))

    async def _close(self, vapi: Any) -> None:
        await maybe_await(vapi.stop())

    async def _toggle_mute(self, vapi: Any) -> bool:
        currently_muted = bool(await maybe_await(vapi.is_muted()))
        await maybe_await(vapi.set_muted(not currently_muted))
        return not currently_muted

    def _on_status_event(self, event: str, *_: Any) -> None:
        self._handle_status(event)

    def _on_message(self, message: Any) -> None:
        message_type = field_of(message, "type")

        if message_type == "transcript":
            self._apply_transcript(message)
        elif message_type == "speech-update" and field_of(message, "role") == "assistant":
            started = field_of(message, "status") == "started"
            self._handle_status("assistant-speech-start" if started else "assistant-speech-end")
        elif message_type == "function-call":
            function_call = field_of(message, "functionCall") or {}
            self._observe_tool_call(
                ToolInvocation(
                    tool_name=field_of(function_call, "name") or "",
                    parameters=field_of(function_call, "parameters") or {},
                    invocation_id=field_of(function_call, "id") or "",
                )
            )

    def _on_error(self, error: Any) -> None:
        message = error_message(error)
        if not message:
            return
        if is_benign_termination(message):
            logger.debug(f"[VAPI] Ignoring normal termination signal: {message}")
            return
        self._handle_remote_error(message)
