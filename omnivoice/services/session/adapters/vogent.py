"""Vogent adapter (pre-configured agent)."""
import logging
from typing import Any, Callable, Optional

from omnivoice.services.providers.models import Credentials, VoiceProvider
from omnivoice.services.session.adapters.base import ProviderSessionAdapter, maybe_await

logger = logging.getLogger(__name__)


class VogentSessionAdapter(ProviderSessionAdapter):
    """
    Drives a Vogent browser call.

    The connection factory receives DialCredentials and returns a call object
    with ``on``, ``monitor_transcript``, ``start``, ``connect_audio``,
    ``hangup`` and ``set_paused``. The transcript monitor pushes the whole
    transcript each time, so updates replace the local copy.
    """

    provider = VoiceProvider.VOGENT
    connected_label = "Connected"

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._transcript_unsubscribe: Optional[Callable[[], None]] = None

    def _bind(self, call: Any, generation: int) -> None:
        call.on("status", self._guard(call, generation, self._handle_status))
        self._transcript_unsubscribe = call.monitor_transcript(
            self._guard(call, generation, self._apply_transcript)
        )

    def _unbind(self, call: Any) -> None:
        # The call object has no way to drop the status listener; the
        # generation guard makes it inert instead.
        unsubscribe, self._transcript_unsubscribe = self._transcript_unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    async def _open(self, call: Any, credentials: Credentials) -> None:
        await maybe_await(call.start())
        await maybe_await(call.connect_audio())

    async def _close(self, call: Any) -> None:
        await maybe_await(call.hangup())

    async def _toggle_mute(self, call: Any) -> bool:
        paused = not self.session.muted
        await maybe_await(call.set_paused(paused))
        return paused
