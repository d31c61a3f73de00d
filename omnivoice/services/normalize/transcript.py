"""Transcript normalization.

Vogent and Ultravox push their whole transcript on every update, so the
result replaces the local copy (snapshot providers). Vapi sends one message
per utterance and only final transcripts are appended.
"""
import logging
from typing import Any, Iterable, List, Optional

from omnivoice.services.providers.models import VoiceProvider
from omnivoice.services.session.models import TranscriptEntry

logger = logging.getLogger(__name__)

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

VOGENT_USER_SPEAKERS = frozenset({"human", "user"})

SNAPSHOT_PROVIDERS = frozenset({VoiceProvider.VOGENT, VoiceProvider.ULTRAVOX})


def field_of(raw: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a mapping or an object."""
    if isinstance(raw, dict):
        return raw.get(name, default)
    return getattr(raw, name, default)


def _speaker(raw: Any) -> str:
    speaker = field_of(raw, "speaker") or ""
    speaker = getattr(speaker, "value", speaker)
    return str(speaker).strip().lower()


def is_snapshot(provider: VoiceProvider) -> bool:
    """True when the provider's transcript update replaces the local copy."""
    return provider in SNAPSHOT_PROVIDERS


def _normalize_vogent(raw: Optional[Iterable[Any]]) -> List[TranscriptEntry]:
    entries = []
    for item in raw or []:
        text = field_of(item, "text") or ""
        if not str(text).strip():
            continue
        role = USER_ROLE if _speaker(item) in VOGENT_USER_SPEAKERS else ASSISTANT_ROLE
        entries.append(TranscriptEntry(role=role, text=str(text)))
    return entries


def _normalize_vapi(raw: Any) -> List[TranscriptEntry]:
    if field_of(raw, "type") != "transcript":
        return []
    if field_of(raw, "transcriptType") != "final":
        return []
    text = field_of(raw, "transcript") or field_of(raw, "content") or ""
    if not str(text).strip():
        return []
    role = USER_ROLE if field_of(raw, "role") == USER_ROLE else ASSISTANT_ROLE
    return [TranscriptEntry(role=role, text=str(text))]


def _normalize_ultravox(raw: Optional[Iterable[Any]]) -> List[TranscriptEntry]:
    return [
        TranscriptEntry(
            role=USER_ROLE if _speaker(item) == USER_ROLE else ASSISTANT_ROLE,
            text=str(field_of(item, "text") or ""),
        )
        for item in raw or []
    ]


def normalize_transcript(provider: VoiceProvider, raw: Any) -> List[TranscriptEntry]:
    """
    Map a raw provider transcript event to canonical entries.

    Args:
        provider: Provider that produced the event
        raw: Vogent transcript list, Vapi message, or Ultravox transcript array

    Returns:
        Entries in delivery order
    """
    if provider == VoiceProvider.VOGENT:
        return _normalize_vogent(raw)
    if provider == VoiceProvider.VAPI:
        return _normalize_vapi(raw)
    if provider == VoiceProvider.ULTRAVOX:
        return _normalize_ultravox(raw)
    logger.warning(f"[TRANSCRIPT] No transcript mapping for provider {provider}")
    return []
