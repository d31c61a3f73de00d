"""Canonical session types shared by adapters and the controller."""
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from omnivoice.services.providers.models import VoiceProvider


class CanonicalStatus(str, Enum):
    """Provider-independent connection and activity status."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    LISTENING = "listening"
    THINKING = "thinking"
    SPEAKING = "speaking"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value

    @property
    def is_live(self) -> bool:
        """True while a channel is open."""
        return self in LIVE_STATUSES

    @property
    def is_activity(self) -> bool:
        return self in ACTIVITY_STATUSES


ACTIVITY_STATUSES = frozenset(
    {CanonicalStatus.LISTENING, CanonicalStatus.THINKING, CanonicalStatus.SPEAKING}
)
LIVE_STATUSES = ACTIVITY_STATUSES | {CanonicalStatus.CONNECTED}

DISCONNECTED_LABEL = "Disconnected"


class StatusUpdate(BaseModel):
    """Result of normalizing one raw provider status."""

    model_config = ConfigDict(frozen=True)

    status: CanonicalStatus
    label: str
    recognized: bool = True


class TranscriptEntry(BaseModel):
    """One utterance in canonical form."""

    model_config = ConfigDict(frozen=True)

    role: str  # "user" or "assistant"
    text: str


class ToolInvocation(BaseModel):
    """A client-side tool call issued by the remote model."""

    tool_name: str
    parameters: Dict[str, Any] = {}
    invocation_id: str = ""


class CallSession(BaseModel):
    """Live session owned by one provider adapter."""

    model_config = ConfigDict(frozen=True)

    provider: VoiceProvider
    call_id: Optional[str] = None
    status: CanonicalStatus = CanonicalStatus.DISCONNECTED
    status_message: str = DISCONNECTED_LABEL
    muted: bool = False
    transcripts: List[TranscriptEntry] = []
    last_error: Optional[str] = None

    @property
    def is_connecting(self) -> bool:
        return self.status == CanonicalStatus.CONNECTING

    @property
    def is_connected(self) -> bool:
        return self.status.is_live

    @property
    def is_active(self) -> bool:
        return self.is_connecting or self.is_connected


class SessionState(BaseModel):
    """Read projection of the active session exposed to callers."""

    model_config = ConfigDict(frozen=True)

    provider: VoiceProvider
    is_connected: bool = False
    is_connecting: bool = False
    status: CanonicalStatus = CanonicalStatus.DISCONNECTED
    status_message: str = DISCONNECTED_LABEL
    transcripts: List[TranscriptEntry] = []
    call_id: Optional[str] = None
    error: Optional[str] = None
    is_muted: bool = False

    @classmethod
    def initial(cls, provider: VoiceProvider) -> "SessionState":
        return cls(provider=provider)

    @classmethod
    def from_session(cls, session: CallSession) -> "SessionState":
        return cls(
            provider=session.provider,
            is_connected=session.is_connected,
            is_connecting=session.is_connecting,
            status=session.status,
            status_message=session.status_message,
            transcripts=list(session.transcripts),
            call_id=session.call_id,
            error=session.last_error,
            is_muted=session.muted,
        )
