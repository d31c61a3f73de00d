"""Unified session controller."""
import asyncio
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from omnivoice.core.errors import ConfigurationError, ProviderSwitchError, UnknownProviderError
from omnivoice.services.providers.models import SessionConfig, VoiceProvider
from omnivoice.services.session.adapters.base import (
    ConnectionFactory,
    CredentialSource,
    ProviderSessionAdapter,
    SessionListener,
    ToolCallObserver,
)
from omnivoice.services.session.adapters.ultravox import UltravoxSessionAdapter
from omnivoice.services.session.adapters.vapi import VapiSessionAdapter
from omnivoice.services.session.adapters.vogent import VogentSessionAdapter
from omnivoice.services.session.models import CallSession, SessionState, ToolInvocation
from omnivoice.services.tools.executor import ToolExecutor, build_default_executor

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]
AdapterBuilder = Callable[[SessionListener], ProviderSessionAdapter]


def defer(callback: Callable[..., Any], *args: Any) -> None:
    """Run a callback on the next loop iteration, or immediately outside a loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback(*args)
        return
    loop.call_soon(callback, *args)


class UnifiedSessionController:
    """
    Single entry point for voice calls, whatever the provider.

    The controller keeps one immutable SessionState and swaps it wholesale on
    every change. Subscribers are notified on the next loop iteration, never
    from inside a transition.
    """

    def __init__(self, provider: VoiceProvider, builders: Mapping[VoiceProvider, AdapterBuilder]):
        self._provider = VoiceProvider(provider)
        self._builders: Dict[VoiceProvider, AdapterBuilder] = dict(builders)
        self._adapters: Dict[VoiceProvider, ProviderSessionAdapter] = {}
        self._listeners: List[StateListener] = []
        self._state = SessionState.initial(self._provider)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def provider(self) -> VoiceProvider:
        return self._provider

    @property
    def adapters(self) -> Dict[VoiceProvider, ProviderSessionAdapter]:
        """Adapters instantiated so far."""
        return dict(self._adapters)

    def set_provider(self, provider: VoiceProvider) -> None:
        """
        Select another provider.

        Raises:
            ProviderSwitchError: A call is connecting or connected; end it first
        """
        provider = VoiceProvider(provider)
        if provider == self._provider:
            return
        if self._state.is_connected or self._state.is_connecting:
            raise ProviderSwitchError(
                f"End the active {self._provider} call before switching to {provider}"
            )
        logger.info(f"[CONTROLLER] Provider switched {self._provider} -> {provider}")
        self._provider = provider
        self._replace(SessionState.initial(provider))

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def active_adapter(self) -> ProviderSessionAdapter:
        """Return the adapter for the current provider, building it on first use."""
        adapter = self._adapters.get(self._provider)
        if adapter is not None:
            return adapter

        builder = self._builders.get(self._provider)
        if builder is None:
            raise UnknownProviderError(self._provider.value)
        adapter = builder(partial(self._on_adapter_change, self._provider))
        self._adapters[self._provider] = adapter
        logger.debug(f"[CONTROLLER] Built {self._provider} adapter")
        return adapter

    async def start_call(self) -> None:
        await self.active_adapter().start()

    async def end_call(self) -> None:
        """End the call and reset state, even if the adapter's teardown fails."""
        adapter = self._adapters.get(self._provider)
        try:
            if adapter is not None:
                await adapter.end()
        except Exception as e:
            logger.error(
                f"[CONTROLLER] Error ending {self._provider} call - "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )
        finally:
            self._replace(SessionState.initial(self._provider))

    async def toggle_mute(self) -> None:
        adapter = self._adapters.get(self._provider)
        if adapter is not None:
            await adapter.toggle_mute()

    async def dispose(self) -> None:
        """Clean up every adapter built so far, not only the active one."""
        for provider, adapter in self._adapters.items():
            try:
                await adapter.cleanup()
            except Exception as e:
                logger.warning(
                    f"[CONTROLLER] Cleanup of {provider} adapter failed: "
                    f"{type(e).__name__}: {str(e)}"
                )
        self._listeners.clear()

    async def __aenter__(self) -> "UnifiedSessionController":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.dispose()

    def _on_adapter_change(self, provider: VoiceProvider, session: CallSession) -> None:
        if provider != self._provider:
            logger.debug(f"[CONTROLLER] Ignoring update from inactive {provider} adapter")
            return
        self._replace(SessionState.from_session(session))

    def _replace(self, state: SessionState) -> None:
        self._state = state
        for listener in list(self._listeners):
            defer(self._deliver, listener, state)

    @staticmethod
    def _deliver(listener: StateListener, state: SessionState) -> None:
        try:
            listener(state)
        except Exception:
            logger.exception("[CONTROLLER] State listener failed")


def build_controller(
    provider: VoiceProvider,
    credentials: CredentialSource,
    connection_factories: Mapping[VoiceProvider, ConnectionFactory],
    tools: Optional[ToolExecutor] = None,
    config: Optional[SessionConfig] = None,
    on_tool_call: Optional[ToolCallObserver] = None,
) -> UnifiedSessionController:
    """
    Wire a controller with one adapter builder per provider.

    Args:
        provider: Provider selected initially
        credentials: SessionInitiationClient or BackendClient
        connection_factories: Builds the provider library's live connection object
        tools: Client-side tools for Ultravox. Defaults to the built-in tools
            searching through ``credentials`` when it can search (BackendClient)
        config: Prompt, voice, model, temperature and history for every call
        on_tool_call: Observer for tool invocations seen on the event stream

    Raises:
        ConfigurationError: Ultravox is wired without tools and the credential
            source cannot back the built-in web search
    """
    if tools is None and VoiceProvider.ULTRAVOX in connection_factories:
        if not callable(getattr(credentials, "search", None)):
            raise ConfigurationError(
                "Ultravox sessions need a tool executor; pass tools= or a credential "
                "source that can search"
            )
        tools = build_default_executor(credentials)

    tool_observer = None
    if on_tool_call is not None:

        def tool_observer(invocation: ToolInvocation) -> None:
            defer(on_tool_call, invocation)

    adapter_classes = {
        VoiceProvider.VOGENT: VogentSessionAdapter,
        VoiceProvider.VAPI: VapiSessionAdapter,
        VoiceProvider.ULTRAVOX: UltravoxSessionAdapter,
    }

    def builder_for(kind: VoiceProvider) -> AdapterBuilder:
        def _build(on_change: SessionListener) -> ProviderSessionAdapter:
            kwargs: Dict[str, Any] = {
                "config": config,
                "on_change": on_change,
                "on_tool_call": tool_observer,
            }
            if kind == VoiceProvider.ULTRAVOX:
                kwargs["tools"] = tools
            return adapter_classes[kind](credentials, connection_factories[kind], **kwargs)

        return _build

    builders = {kind: builder_for(kind) for kind in adapter_classes if kind in connection_factories}
    return UnifiedSessionController(provider, builders)
