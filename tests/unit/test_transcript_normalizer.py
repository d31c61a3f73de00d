"""Unit tests for transcript normalization."""
from types import SimpleNamespace

from omnivoice.services.normalize.transcript import is_snapshot, normalize_transcript
from omnivoice.services.providers.models import VoiceProvider
from omnivoice.services.session.models import TranscriptEntry


class TestVogentTranscript:
    """Pre-configured agent transcripts."""

    def test_human_speaker_is_user(self):
        """Test the HUMAN speaker tag maps to the user role."""
        entries = normalize_transcript(VoiceProvider.VOGENT, [{"speaker": "HUMAN", "text": "hi"}])
        assert entries == [TranscriptEntry(role="user", text="hi")]

    def test_speaker_case_insensitive(self):
        entries = normalize_transcript(
            VoiceProvider.VOGENT,
            [
                {"speaker": "human", "text": "a"},
                {"speaker": "User", "text": "b"},
                {"speaker": "AI", "text": "c"},
                {"speaker": "agent", "text": "d"},
            ],
        )
        assert [e.role for e in entries] == ["user", "user", "assistant", "assistant"]

    def test_blank_entries_dropped(self):
        """Test that empty and whitespace-only text never reaches the output."""
        entries = normalize_transcript(
            VoiceProvider.VOGENT,
            [
                {"speaker": "HUMAN", "text": ""},
                {"speaker": "AI", "text": "   "},
                {"speaker": "AI", "text": None},
                {"speaker": "AI", "text": "Hello there"},
            ],
        )
        assert entries == [TranscriptEntry(role="assistant", text="Hello there")]

    def test_empty_input(self):
        assert normalize_transcript(VoiceProvider.VOGENT, None) == []


class TestVapiTranscript:
    """Dynamic assistant transcripts."""

    def test_partial_is_discarded(self):
        """Test that interim results never produce entries."""
        message = {
            "type": "transcript",
            "transcriptType": "partial",
            "role": "user",
            "transcript": "hel",
        }
        assert normalize_transcript(VoiceProvider.VAPI, message) == []

    def test_final_is_emitted(self):
        message = {
            "type": "transcript",
            "transcriptType": "final",
            "role": "user",
            "transcript": "hello",
        }
        assert normalize_transcript(VoiceProvider.VAPI, message) == [
            TranscriptEntry(role="user", text="hello")
        ]

    def test_assistant_role_and_content_fallback(self):
        message = {"type": "transcript", "transcriptType": "final", "role": "bot", "content": "Sure."}
        assert normalize_transcript(VoiceProvider.VAPI, message) == [
            TranscriptEntry(role="assistant", text="Sure.")
        ]

    def test_other_message_types_ignored(self):
        assert normalize_transcript(VoiceProvider.VAPI, {"type": "function-call"}) == []


class TestUltravoxTranscript:
    """Snapshot transcripts."""

    def test_full_array_mapped_in_order(self):
        raw = [
            SimpleNamespace(speaker="user", text="What is two plus two?"),
            SimpleNamespace(speaker="agent", text="Four."),
            {"speaker": "USER", "text": "Thanks"},
        ]
        entries = normalize_transcript(VoiceProvider.ULTRAVOX, raw)
        assert entries == [
            TranscriptEntry(role="user", text="What is two plus two?"),
            TranscriptEntry(role="assistant", text="Four."),
            TranscriptEntry(role="user", text="Thanks"),
        ]

    def test_duplicates_are_kept(self):
        """Test that the provider's array is authoritative, duplicates included."""
        raw = [{"speaker": "agent", "text": "Hi"}, {"speaker": "agent", "text": "Hi"}]
        assert len(normalize_transcript(VoiceProvider.ULTRAVOX, raw)) == 2


def test_snapshot_providers():
    assert is_snapshot(VoiceProvider.ULTRAVOX) is True
    assert is_snapshot(VoiceProvider.VOGENT) is True
    assert is_snapshot(VoiceProvider.VAPI) is False
