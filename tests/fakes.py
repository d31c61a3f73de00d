"""In-memory stand-ins for the provider client libraries."""
import asyncio
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence

from omnivoice.services.providers.models import (
    DialCredentials,
    JoinCredentials,
    SessionConfig,
    VoiceProvider,
)


class FakeVogentCall:
    """Mimics the Vogent web client call object."""

    def __init__(
        self,
        credentials: DialCredentials,
        fail_on_audio: Optional[Exception] = None,
        audio_statuses: Sequence[str] = (),
    ):
        self.credentials = credentials
        self.fail_on_audio = fail_on_audio
        self.audio_statuses = list(audio_statuses)
        self.handlers: Dict[str, List[Callable]] = defaultdict(list)
        self.transcript_handler: Optional[Callable] = None
        self.started = False
        self.audio_connected = False
        self.hung_up = False
        self.paused: Optional[bool] = None

    def on(self, event: str, handler: Callable) -> None:
        self.handlers[event].append(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self.handlers[event]):
            handler(*args)

    def monitor_transcript(self, handler: Callable) -> Callable[[], None]:
        self.transcript_handler = handler

        def _unsubscribe() -> None:
            self.transcript_handler = None

        return _unsubscribe

    def push_transcript(self, transcript: List[Dict[str, str]]) -> None:
        if self.transcript_handler is not None:
            self.transcript_handler(transcript)

    async def start(self) -> None:
        self.started = True

    async def connect_audio(self) -> None:
        if self.fail_on_audio is not None:
            raise self.fail_on_audio
        self.audio_connected = True
        for status in self.audio_statuses:
            self.emit("status", status)

    async def hangup(self) -> None:
        self.hung_up = True

    async def set_paused(self, paused: bool) -> None:
        self.paused = paused


class FakeVapi:
    """Mimics the Vapi web client."""

    def __init__(
        self,
        credentials: JoinCredentials,
        stop_error: Optional[Exception] = None,
        start_events: Sequence[str] = (),
    ):
        self.credentials = credentials
        self.stop_error = stop_error
        self.start_events = list(start_events)
        self.handlers: Dict[str, List[Callable]] = defaultdict(list)
        self.joined_url: Optional[str] = None
        self.stopped = False
        self.muted = False

    def on(self, event: str, handler: Callable) -> None:
        self.handlers[event].append(handler)

    def off(self, event: str, handler: Callable) -> None:
        if handler in self.handlers[event]:
            self.handlers[event].remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self.handlers[event]):
            handler(*args)

    async def start(self, join_url: str) -> Dict[str, str]:
        self.joined_url = join_url
        for event in self.start_events:
            self.emit(event)
        return {"id": self.credentials.call_id}

    def stop(self) -> None:
        self.stopped = True
        if self.stop_error is not None:
            raise self.stop_error

    def is_muted(self) -> bool:
        return self.muted

    def set_muted(self, muted: bool) -> None:
        self.muted = muted


class FakeUltravoxSession:
    """Mimics the Ultravox client session."""

    def __init__(
        self,
        credentials: JoinCredentials,
        join_status: Optional[str] = "idle",
        join_gate: Optional[asyncio.Event] = None,
    ):
        self.credentials = credentials
        self.join_status = join_status
        self.join_gate = join_gate
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)
        self.tools: Dict[str, Callable] = {}
        self.tools_at_join: List[str] = []
        self.status = "disconnected"
        self.transcripts: List[Dict[str, Any]] = []
        self.is_mic_muted = False
        self.joined_url: Optional[str] = None
        self.left = False

    def add_event_listener(self, event: str, listener: Callable) -> None:
        self.listeners[event].append(listener)

    def remove_event_listener(self, event: str, listener: Callable) -> None:
        if listener in self.listeners[event]:
            self.listeners[event].remove(listener)

    def dispatch(self, event: str, payload: Any = None) -> None:
        for listener in list(self.listeners[event]):
            listener(payload)

    def set_status(self, status: str) -> None:
        self.status = status
        self.dispatch("status")

    def set_transcripts(self, transcripts: List[Dict[str, Any]]) -> None:
        self.transcripts = transcripts
        self.dispatch("transcripts")

    def register_tool_implementation(self, name: str, implementation: Callable) -> None:
        self.tools[name] = implementation

    async def join_call(self, join_url: str) -> None:
        self.joined_url = join_url
        self.tools_at_join = list(self.tools)
        self.set_status("connecting")
        if self.join_gate is not None:
            await self.join_gate.wait()
        if self.join_status:
            self.set_status(self.join_status)

    def leave_call(self) -> None:
        self.left = True

    def mute_mic(self) -> None:
        self.is_mic_muted = True

    def unmute_mic(self) -> None:
        self.is_mic_muted = False


class ConnectionRecorder:
    """Connection factory that remembers every object it builds."""

    def __init__(self, connection_class: type, **kwargs: Any):
        self.connection_class = connection_class
        self.kwargs = kwargs
        self.created: List[Any] = []

    def __call__(self, credentials: Any) -> Any:
        connection = self.connection_class(credentials, **self.kwargs)
        self.created.append(connection)
        return connection

    @property
    def last(self) -> Any:
        return self.created[-1]


class FakeCredentialSource:
    """Credential source returning canned credentials per provider."""

    def __init__(self, error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.error = error
        self.gate = gate
        self.terminate_error: Optional[Exception] = None
        self.initiated: List[VoiceProvider] = []
        self.terminated: List[tuple] = []
        self.configs: List[Optional[SessionConfig]] = []

    async def initiate(self, provider: VoiceProvider, config: Optional[SessionConfig] = None):
        self.initiated.append(provider)
        self.configs.append(config)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if provider == VoiceProvider.VOGENT:
            return DialCredentials(session_id="s1", dial_id="d1", dial_token="t1")
        return JoinCredentials(join_url=f"wss://{provider.value}.test/join", call_id=f"{provider.value}-call")

    async def terminate(self, provider: VoiceProvider, call_id: str) -> None:
        self.terminated.append((provider, call_id))
        if self.terminate_error is not None:
            raise self.terminate_error


class RecordingSearch:
    """Search backend stub."""

    def __init__(self, summary: Optional[str] = "", error: Optional[Exception] = None):
        self.summary = summary
        self.error = error
        self.queries: List[str] = []

    async def search(self, query: str) -> Dict[str, Any]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return {"summary": self.summary, "results": {}}


class SearchingCredentialSource(FakeCredentialSource):
    """Credential source that can also answer searches, like BackendClient."""

    def __init__(self, summary: str = "", **kwargs: Any):
        super().__init__(**kwargs)
        self.summary = summary
        self.queries: List[str] = []

    async def search(self, query: str) -> Dict[str, Any]:
        self.queries.append(query)
        return {"summary": self.summary, "results": {}}
