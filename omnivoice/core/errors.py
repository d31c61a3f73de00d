"""Error taxonomy shared by the server and the session layer."""
from typing import Optional

BENIGN_TERMINATION_MARKERS = ("meeting ended", "ejection")


class OmniVoiceError(Exception):
    """Base class for all application errors."""


class AuthError(OmniVoiceError):
    """A server-held provider secret is missing."""


class ConfigurationError(OmniVoiceError):
    """A required non-secret setting is missing."""


class UnknownProviderError(OmniVoiceError):
    """The provider value is not one of the supported families."""

    def __init__(self, provider: Optional[str]):
        self.provider = provider
        super().__init__(f"Unknown provider: {provider}")


class UpstreamError(OmniVoiceError):
    """A provider or the search collaborator answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class BenignTerminationError(OmniVoiceError):
    """A normal hangup reported through a provider's error channel."""


class ToolExecutionError(OmniVoiceError):
    """A client-side tool could not produce its answer."""


class ProviderSwitchError(OmniVoiceError):
    """The provider was changed while a call is still active."""


def is_benign_termination(message: Optional[str]) -> bool:
    """Return True when an error message is really an ordinary end of call."""
    if not message:
        return False
    lowered = message.lower()
    return any(marker in lowered for marker in BENIGN_TERMINATION_MARKERS)


def classify_error(error: BaseException) -> BaseException:
    """Map a provider error to BenignTerminationError when it is a normal hangup."""
    if isinstance(error, BenignTerminationError):
        return error
    if is_benign_termination(str(error)):
        return BenignTerminationError(str(error))
    return error
