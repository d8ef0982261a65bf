"""Voice dictation support."""

from .controller import TranscriptEvent, VoiceCaptureController, VoiceState

__all__ = ["TranscriptEvent", "VoiceCaptureController", "VoiceState"]
