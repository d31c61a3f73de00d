"""Provider enumeration, per-call configuration and credential bundles."""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from omnivoice.core.errors import UnknownProviderError


class VoiceProvider(str, Enum):
    """Supported voice platforms."""

    VOGENT = "vogent"  # Pre-configured agent
    VAPI = "vapi"  # Dynamic assistant
    ULTRAVOX = "ultravox"  # Real-time session with client-side tools

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Optional[str]) -> "VoiceProvider":
        """Parse a raw provider value, raising UnknownProviderError if unsupported."""
        if value is None:
            raise UnknownProviderError(value)
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnknownProviderError(value)


class MessagePart(BaseModel):
    """One part of a chat message."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class ChatMessage(BaseModel):
    """Prior conversation message used to seed a voice session."""

    model_config = ConfigDict(extra="allow")

    role: str
    parts: List[MessagePart] = []

    def first_text(self) -> Optional[str]:
        """Return the first non-empty text part, if any."""
        for part in self.parts:
            if part.type == "text" and part.text:
                return part.text
        return None


class SessionConfig(BaseModel):
    """Caller-supplied configuration for one voice session."""

    system_prompt: Optional[str] = None
    voice: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    messages: List[ChatMessage] = []
    # Client tools the caller has registered; None offers every server-side definition
    tool_names: Optional[List[str]] = None


class DialCredentials(BaseModel):
    """Vogent dial credentials."""

    session_id: str
    dial_id: str
    dial_token: str

    @property
    def call_id(self) -> str:
        return self.dial_id

    def to_response(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "dialId": self.dial_id,
            "dialToken": self.dial_token,
        }


class JoinCredentials(BaseModel):
    """Join URL and call id returned by Vapi and Ultravox."""

    join_url: str
    call_id: str

    def to_response(self) -> Dict[str, Any]:
        return {"joinUrl": self.join_url, "callId": self.call_id}


Credentials = Union[DialCredentials, JoinCredentials]


def credentials_from_response(
    provider: VoiceProvider, data: Dict[str, Any]
) -> Credentials:
    """Build a credential bundle from a /session response body."""
    if provider == VoiceProvider.VOGENT:
        return DialCredentials(
            session_id=data.get("sessionId", ""),
            dial_id=data.get("dialId", ""),
            dial_token=data.get("dialToken", ""),
        )
    return JoinCredentials(
        join_url=data.get("joinUrl", ""),
        call_id=data.get("callId", ""),
    )


class SessionRequest(BaseModel):
    """Body of POST /session."""

    model_config = ConfigDict(populate_by_name=True)

    provider: Optional[str] = None
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")
    voice: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    messages: Optional[List[ChatMessage]] = None
    tool_names: Optional[List[str]] = Field(default=None, alias="tools")

    def to_config(self) -> SessionConfig:
        return SessionConfig(
            system_prompt=self.system_prompt,
            voice=self.voice,
            model=self.model,
            temperature=self.temperature,
            messages=self.messages or [],
            tool_names=self.tool_names,
        )
