"""Provider session adapter base class.

An adapter owns one live connection object from a provider client library,
wires its events through the status and transcript normalizers, and exposes
start/end/toggle_mute/cleanup. None of these four operations raise: failures
are recorded on the CallSession, which is replaced (never mutated) and
pushed to ``on_change`` after every transition.
"""
import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, Set

from omnivoice.core.errors import BenignTerminationError, classify_error, is_benign_termination
from omnivoice.services.normalize.status import normalize_status
from omnivoice.services.normalize.transcript import is_snapshot, normalize_transcript
from omnivoice.services.providers.models import Credentials, SessionConfig, VoiceProvider
from omnivoice.services.session.models import (
    CallSession,
    CanonicalStatus,
    StatusUpdate,
    ToolInvocation,
)

logger = logging.getLogger(__name__)

CONNECTING_LABEL = "Connecting..."
ERROR_LABEL = "Error"
CALL_ENDED_LABEL = "Call Ended"
START_FAILED_MESSAGE = "Failed to start call"

SessionListener = Callable[[CallSession], None]
ToolCallObserver = Callable[[ToolInvocation], None]
ConnectionFactory = Callable[[Credentials], Any]


class CredentialSource(Protocol):
    """Creates and ends remote calls (in-process client or HTTP backend)."""

    async def initiate(
        self, provider: VoiceProvider, config: Optional[SessionConfig] = None
    ) -> Credentials:
        ...

    async def terminate(self, provider: VoiceProvider, call_id: str) -> None:
        ...


async def maybe_await(value: Any) -> Any:
    """Await the value if the client library returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


class ProviderSessionAdapter(ABC):
    """
    Common state machine for all provider adapters.

        disconnected -> connecting -> connected
        connected -> listening -> thinking -> speaking -> connected
        any -> disconnected | error  (end(), remote end, remote error)

    Every listener handed to the connection is bound to the connection and
    to a start generation; once end() or cleanup() runs, late callbacks from
    the old connection are dropped.
    """

    provider: VoiceProvider
    connected_label = "Connected - Ready"

    def __init__(
        self,
        credentials: CredentialSource,
        connection_factory: ConnectionFactory,
        config: Optional[SessionConfig] = None,
        on_change: Optional[SessionListener] = None,
        on_tool_call: Optional[ToolCallObserver] = None,
    ):
        self.credentials = credentials
        self.connection_factory = connection_factory
        self.config = config or SessionConfig()
        self.on_change = on_change
        self.on_tool_call = on_tool_call
        self.session = CallSession(provider=self.provider)
        self._connection: Any = None
        self._generation = 0
        self._pending: Set[asyncio.Task] = set()

    @property
    def connection(self) -> Any:
        """The live connection object, if a call is open."""
        return self._connection

    @property
    def tag(self) -> str:
        return self.provider.value.upper()

    # ------------------------------------------------------------------
    # Provider hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _bind(self, connection: Any, generation: int) -> None:
        """Register listeners (and tools) on a fresh connection."""

    @abstractmethod
    def _unbind(self, connection: Any) -> None:
        """Remove listeners registered by _bind."""

    @abstractmethod
    async def _open(self, connection: Any, credentials: Credentials) -> None:
        """Open the live channel."""

    @abstractmethod
    async def _close(self, connection: Any) -> None:
        """Hang up the live channel."""

    @abstractmethod
    async def _toggle_mute(self, connection: Any) -> bool:
        """Flip the provider mute state and return the new value."""

    def _session_config(self) -> SessionConfig:
        """Configuration sent with initiate."""
        return self.config

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start a call. No-op while a call is connecting or connected."""
        if self.session.is_active:
            logger.debug(f"[{self.tag}] start() ignored, session is {self.session.status}")
            return

        self._generation += 1
        generation = self._generation
        self._update(
            status=CanonicalStatus.CONNECTING,
            status_message=CONNECTING_LABEL,
            call_id=None,
            muted=False,
            transcripts=[],
            last_error=None,
        )

        connection = None
        credentials = None
        try:
            credentials = await self.credentials.initiate(self.provider, self._session_config())
            if generation != self._generation:
                logger.info(f"[{self.tag}] Call ended while initiating, discarding credentials")
                await self._terminate_quietly(credentials.call_id)
                return

            connection = self.connection_factory(credentials)
            self._connection = connection
            self._bind(connection, generation)
            await self._open(connection, credentials)
        except Exception as e:
            call_id = credentials.call_id if credentials is not None else None
            if generation != self._generation:
                logger.info(f"[{self.tag}] Start failed after the call was ended: {str(e)}")
                await self._terminate_quietly(call_id)
                return
            message = str(e) or START_FAILED_MESSAGE
            logger.error(
                f"[{self.tag}] Failed to start call - Error: {type(e).__name__}: {message}",
                exc_info=True,
            )
            await self._abandon(connection)
            await self._terminate_quietly(call_id)
            self._update(
                status=CanonicalStatus.ERROR,
                status_message=ERROR_LABEL,
                call_id=None,
                muted=False,
                last_error=message,
            )
            return

        if generation != self._generation or self._connection is not connection:
            # end() ran while the channel was opening, before call_id was recorded
            logger.info(f"[{self.tag}] Call ended while connecting, ending remote call")
            await self._terminate_quietly(credentials.call_id)
            return

        changes = {"call_id": credentials.call_id or None}
        if self.session.status == CanonicalStatus.CONNECTING:
            changes.update(
                status=CanonicalStatus.CONNECTED,
                status_message=self.connected_label,
            )
        self._update(**changes)
        logger.info(f"[{self.tag}] Call started - Call ID: {credentials.call_id}")

    async def end(self) -> None:
        """Hang up and reset. Safe to call with no active session."""
        connection = self._connection
        if connection is None and self.session == CallSession(provider=self.provider):
            return

        self._generation += 1
        self._connection = None
        call_id = self.session.call_id

        if connection is not None:
            self._unbind_quietly(connection)
            try:
                await self._close(connection)
            except Exception as e:
                error = classify_error(e)
                if isinstance(error, BenignTerminationError):
                    logger.debug(f"[{self.tag}] Ignoring normal termination signal: {str(e)}")
                else:
                    logger.error(
                        f"[{self.tag}] Error ending call - Error: {type(e).__name__}: {str(e)}",
                        exc_info=True,
                    )
            if call_id:
                await self._terminate_quietly(call_id)

        self._reset()
        logger.info(f"[{self.tag}] Call ended - Call ID: {call_id}")

    async def toggle_mute(self) -> None:
        """Invert the mute state. No-op without a connection."""
        connection = self._connection
        if connection is None:
            return
        try:
            muted = await self._toggle_mute(connection)
        except Exception as e:
            logger.error(f"[{self.tag}] Error toggling mute: {type(e).__name__}: {str(e)}")
            return
        if self._connection is connection:
            self._update(muted=bool(muted))

    async def cleanup(self) -> None:
        """Forceful teardown on owner disposal. Idempotent, never raises."""
        connection = self._connection
        self._generation += 1
        self._connection = None
        self.session = CallSession(provider=self.provider)
        if connection is None:
            return
        self._unbind_quietly(connection)
        try:
            await self._close(connection)
        except Exception as e:
            logger.debug(f"[{self.tag}] Ignoring cleanup error: {type(e).__name__}: {str(e)}")

    # ------------------------------------------------------------------
    # Event handling shared by all providers
    # ------------------------------------------------------------------

    def _is_current(self, connection: Any, generation: int) -> bool:
        return self._connection is connection and self._generation == generation

    def _guard(self, connection: Any, generation: int, handler: Callable[..., None]) -> Callable[..., None]:
        """Wrap a handler so it only runs for the adapter's current connection."""

        def _listener(*args: Any, **kwargs: Any) -> None:
            if not self._is_current(connection, generation):
                logger.debug(f"[{self.tag}] Dropping event from a stale connection")
                return
            try:
                handler(*args, **kwargs)
            except Exception:
                logger.exception(f"[{self.tag}] Event handler failed")

        return _listener

    def _handle_status(self, raw_status: Any) -> None:
        self._apply_status(normalize_status(self.provider, raw_status), raw_status)

    def _apply_status(self, update: StatusUpdate, raw_status: Any = None) -> None:
        if not update.recognized:
            logger.warning(f"[{self.tag}] Ignoring unknown status '{raw_status}'")
            return

        if update.status == CanonicalStatus.DISCONNECTED:
            self._handle_remote_end(update.label)
            return
        if update.status == CanonicalStatus.ERROR:
            self._handle_remote_error(update.label)
            return

        if update.status.is_activity and self.session.status == CanonicalStatus.CONNECTING:
            self._update(status=CanonicalStatus.CONNECTED, status_message=self.connected_label)
        self._update(status=update.status, status_message=update.label)

    def _apply_transcript(self, raw: Any) -> None:
        entries = normalize_transcript(self.provider, raw)
        if is_snapshot(self.provider):
            self._update(transcripts=entries)
        elif entries:
            self._update(transcripts=[*self.session.transcripts, *entries])

    def _observe_tool_call(self, invocation: ToolInvocation) -> None:
        logger.info(
            f"[{self.tag}] Tool call: {invocation.tool_name} "
            f"(invocation {invocation.invocation_id or 'n/a'})"
        )
        if self.on_tool_call is not None:
            self.on_tool_call(invocation)

    def _handle_remote_end(self, label: str = CALL_ENDED_LABEL) -> None:
        """The provider ended the call. Transcripts stay until end() resets them."""
        logger.info(f"[{self.tag}] Remote side ended the call ({label})")
        self._release()
        self._update(
            status=CanonicalStatus.DISCONNECTED,
            status_message=label,
            call_id=None,
            muted=False,
        )

    def _handle_remote_error(self, message: str) -> None:
        if is_benign_termination(message):
            logger.info(f"[{self.tag}] Suppressing normal termination signal: {message}")
            self._handle_remote_end(CALL_ENDED_LABEL)
            return

        logger.error(f"[{self.tag}] Remote error: {message}")
        connection = self._release()
        if connection is not None:
            self._schedule(self._close_quietly(connection))
        self._update(
            status=CanonicalStatus.ERROR,
            status_message=ERROR_LABEL,
            call_id=None,
            muted=False,
            last_error=message or ERROR_LABEL,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(self, **changes: Any) -> None:
        self.session = self.session.model_copy(update=changes)
        if self.on_change is not None:
            self.on_change(self.session)

    def _reset(self) -> None:
        self.session = CallSession(provider=self.provider)
        if self.on_change is not None:
            self.on_change(self.session)

    def _release(self) -> Any:
        """Forget the current connection without closing it."""
        connection = self._connection
        self._generation += 1
        self._connection = None
        if connection is not None:
            self._unbind_quietly(connection)
        return connection

    def _unbind_quietly(self, connection: Any) -> None:
        try:
            self._unbind(connection)
        except Exception as e:
            logger.debug(f"[{self.tag}] Ignoring unbind error: {type(e).__name__}: {str(e)}")

    async def _close_quietly(self, connection: Any) -> None:
        try:
            await self._close(connection)
        except Exception as e:
            logger.debug(f"[{self.tag}] Ignoring close error: {type(e).__name__}: {str(e)}")

    async def _abandon(self, connection: Any) -> None:
        """Tear down a half-built connection after a failed start."""
        if connection is None:
            return
        if self._connection is connection:
            self._connection = None
        self._unbind_quietly(connection)
        await self._close_quietly(connection)

    async def _terminate_quietly(self, call_id: Optional[str]) -> None:
        if not call_id:
            return
        try:
            await self.credentials.terminate(self.provider, call_id)
        except Exception as e:
            logger.warning(
                f"[{self.tag}] Best-effort terminate failed for {call_id}: "
                f"{type(e).__name__}: {str(e)}"
            )

    def _schedule(self, coro: Any) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
