"""Dictation capture on top of a platform speech recogniser.

The controller owns at most one recogniser session.  Transcript events replace
the pending input text with everything heard so far; a final result stops the
session after a short grace delay.  Recogniser events are expected on the
event loop thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..conversations.models import Notification

logger = logging.getLogger(__name__)

PERMISSION_ERRORS = frozenset({"not-allowed", "service-not-allowed"})
CONNECTIVITY_ERRORS = frozenset({"network"})
SILENT_ERRORS = frozenset({"no-speech", "aborted"})


class VoiceState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ERROR = "error"


@dataclass(frozen=True)
class TranscriptEvent:
    results: Sequence[str]
    is_final: bool = False

    @property
    def transcript(self) -> str:
        return "".join(self.results)


class Recognizer(Protocol):
    def start(
        self,
        on_result: Callable[[TranscriptEvent], None],
        on_error: Callable[[str], None],
        on_end: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...


class RecognizerFactory(Protocol):
    def __call__(self, *, lang: str, continuous: bool, interim_results: bool) -> Recognizer: ...


def classify_error(code: str) -> Notification | None:
    """Return the notification to show for a recogniser error, if any."""

    if code in PERMISSION_ERRORS:
        return Notification(
            title="Microphone access denied",
            description="Please allow microphone access to use voice input.",
            variant="destructive",
        )
    if code in CONNECTIVITY_ERRORS:
        return Notification(
            title="Network error",
            description="Voice input needs an internet connection. Please try again.",
            variant="destructive",
        )
    return None


class VoiceCaptureController:
    def __init__(
        self,
        factory: RecognizerFactory | None = None,
        *,
        on_transcript: Callable[[str], None],
        on_notify: Callable[[Notification], None] | None = None,
        lang: str = "en-GB",
        grace_delay: float = 0.5,
    ) -> None:
        self._factory = factory
        self._on_transcript = on_transcript
        self._on_notify = on_notify
        self.lang = lang
        self.grace_delay = grace_delay
        self.state = VoiceState.IDLE
        self._recognizer: Recognizer | None = None
        self._stop_handle: asyncio.TimerHandle | None = None

    @property
    def available(self) -> bool:
        return self._factory is not None

    @property
    def listening(self) -> bool:
        return self.state is VoiceState.LISTENING

    def start(self) -> bool:
        if self._factory is None or self._recognizer is not None:
            return False
        recognizer = self._factory(lang=self.lang, continuous=True, interim_results=True)
        self._recognizer = recognizer
        self.state = VoiceState.LISTENING
        try:
            recognizer.start(
                lambda event: self._handle_result(recognizer, event),
                lambda code: self._handle_error(recognizer, code),
                lambda: self._handle_end(recognizer),
            )
        except Exception:
            logger.exception("Could not start speech recognition")
            self._release()
            self.state = VoiceState.ERROR
            return False
        return True

    def stop(self) -> None:
        recognizer = self._recognizer
        self._release()
        if recognizer is not None:
            recognizer.stop()
        if self.state is VoiceState.LISTENING:
            self.state = VoiceState.IDLE

    def toggle(self) -> bool:
        if self._recognizer is not None:
            self.stop()
            return False
        return self.start()

    def cancel(self) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _release(self) -> None:
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None
        self._recognizer = None

    def _handle_result(self, recognizer: Recognizer, event: TranscriptEvent) -> None:
        if recognizer is not self._recognizer:
            return
        self._on_transcript(event.transcript)
        if event.is_final and self._stop_handle is None:
            loop = asyncio.get_running_loop()
            self._stop_handle = loop.call_later(self.grace_delay, self._auto_stop, recognizer)

    def _auto_stop(self, recognizer: Recognizer) -> None:
        self._stop_handle = None
        if recognizer is self._recognizer:
            self.stop()

    def _handle_error(self, recognizer: Recognizer, code: str) -> None:
        if recognizer is not self._recognizer:
            return
        self._release()
        notification = classify_error(code)
        if notification is not None:
            self.state = VoiceState.ERROR
            if self._on_notify is not None:
                self._on_notify(notification)
            return
        if code not in SILENT_ERRORS:
            logger.warning("Speech recognition error: %s", code)
        self.state = VoiceState.IDLE

    def _handle_end(self, recognizer: Recognizer) -> None:
        if recognizer is not self._recognizer:
            return
        self._release()
        self.state = VoiceState.IDLE


__all__ = [
    "Recognizer",
    "RecognizerFactory",
    "TranscriptEvent",
    "VoiceCaptureController",
    "VoiceState",
    "classify_error",
]
