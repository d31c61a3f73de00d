"""Status normalization.

Each provider reports connection and activity state in its own vocabulary.
The tables below map every raw value a provider can emit onto
CanonicalStatus plus a human-readable label. Values missing from a table
come back with ``recognized=False`` so the caller can decide to ignore them.
"""
from typing import Any, Dict, Tuple

from omnivoice.services.providers.models import VoiceProvider
from omnivoice.services.session.models import CanonicalStatus, StatusUpdate

UNKNOWN_LABEL = "Unknown"

_Table = Dict[str, Tuple[CanonicalStatus, str]]

VOGENT_STATUS_TABLE: _Table = {
    "connecting": (CanonicalStatus.CONNECTING, "Connecting..."),
    "connected": (CanonicalStatus.CONNECTED, "Connected"),
    "ended": (CanonicalStatus.DISCONNECTED, "Call Ended"),
    "error": (CanonicalStatus.ERROR, "Error"),
}

# Vapi reports status through event names as well as client states.
VAPI_STATUS_TABLE: _Table = {
    "call-start": (CanonicalStatus.CONNECTED, "Connected - Ready"),
    "call-end": (CanonicalStatus.DISCONNECTED, "Disconnected"),
    "speech-start": (CanonicalStatus.LISTENING, "Listening..."),
    "speech-end": (CanonicalStatus.THINKING, "Thinking..."),
    "assistant-speech-start": (CanonicalStatus.SPEAKING, "Speaking..."),
    "assistant-speech-end": (CanonicalStatus.CONNECTED, "Connected - Ready"),
    "disconnected": (CanonicalStatus.DISCONNECTED, "Disconnected"),
    "connecting": (CanonicalStatus.CONNECTING, "Connecting..."),
    "connected": (CanonicalStatus.CONNECTED, "Connected - Ready"),
    "active": (CanonicalStatus.CONNECTED, "Active"),
    "ended": (CanonicalStatus.DISCONNECTED, "Call Ended"),
    "error": (CanonicalStatus.ERROR, "Error"),
}

ULTRAVOX_STATUS_TABLE: _Table = {
    "disconnected": (CanonicalStatus.DISCONNECTED, "Disconnected"),
    "disconnecting": (CanonicalStatus.DISCONNECTED, "Disconnecting..."),
    "connecting": (CanonicalStatus.CONNECTING, "Connecting..."),
    "idle": (CanonicalStatus.CONNECTED, "Connected - Ready"),
    "listening": (CanonicalStatus.LISTENING, "Listening..."),
    "thinking": (CanonicalStatus.THINKING, "Thinking..."),
    "speaking": (CanonicalStatus.SPEAKING, "Speaking..."),
}

STATUS_TABLES: Dict[VoiceProvider, _Table] = {
    VoiceProvider.VOGENT: VOGENT_STATUS_TABLE,
    VoiceProvider.VAPI: VAPI_STATUS_TABLE,
    VoiceProvider.ULTRAVOX: ULTRAVOX_STATUS_TABLE,
}


def raw_status_key(raw_status: Any) -> str:
    """Reduce a raw status (string, enum member or None) to a lookup key."""
    if raw_status is None:
        return ""
    value = getattr(raw_status, "value", raw_status)
    return str(value).strip().lower()


def normalize_status(provider: VoiceProvider, raw_status: Any) -> StatusUpdate:
    """Map a provider status onto the canonical enumeration. Never raises."""
    table = STATUS_TABLES.get(provider, {})
    entry = table.get(raw_status_key(raw_status))
    if entry is None:
        return StatusUpdate(
            status=CanonicalStatus.DISCONNECTED,
            label=UNKNOWN_LABEL,
            recognized=False,
        )
    status, label = entry
    return StatusUpdate(status=status, label=label)
