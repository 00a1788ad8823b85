"""
callshield/stt/session.py
==========================
Streaming recognition seam — CallShield

Responsibility:
    - Define the listener contract a streaming recognizer reports into
      (partial hypotheses, final utterances with confidence, errors)
    - Define the session contract the controller starts and stops per call
    - Accumulate final utterances into the call transcript

``PushedRecognitionSession`` is used when recognition runs in the host
shell and results arrive over the HTTP bridge: start/stop only gate
whether pushed results are forwarded.

This module does NOT:
    - Run a speech model
    - Score text
"""

import logging
import threading
from typing import Protocol

logger = logging.getLogger("callshield.stt.session")

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "te": "Telugu",
}


def language_name(tag: str | None) -> str:
    """'hi-IN' → 'Hindi'. Unknown tags are returned unchanged."""
    if not tag:
        return "Unknown"
    base = tag.split("-")[0].split("_")[0].lower()
    return LANGUAGE_NAMES.get(base, tag)


class SpeechListener(Protocol):
    def on_partial(self, text: str, language: str | None = None) -> None: ...

    def on_final(
        self, text: str, language: str | None = None, confidence: float | None = None,
    ) -> None: ...

    def on_error(self, message: str) -> None: ...


class RecognitionSession(Protocol):
    def start(self, listener: SpeechListener) -> None: ...

    def stop(self) -> None: ...


class PushedRecognitionSession:
    """Recognition performed elsewhere; results are pushed in via ``deliver_*``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listener: SpeechListener | None = None

    @property
    def active(self) -> bool:
        return self._listener is not None

    def start(self, listener: SpeechListener) -> None:
        with self._lock:
            self._listener = listener
        logger.info("Speech session opened.")

    def stop(self) -> None:
        with self._lock:
            self._listener = None
        logger.info("Speech session closed.")

    def deliver_partial(self, text: str, language: str | None = None) -> bool:
        listener = self._listener
        if listener is None:
            return False
        listener.on_partial(text, language)
        return True

    def deliver_final(
        self, text: str, language: str | None = None, confidence: float | None = None,
    ) -> bool:
        listener = self._listener
        if listener is None:
            return False
        listener.on_final(text, language, confidence)
        return True

    def deliver_error(self, message: str) -> bool:
        listener = self._listener
        if listener is None:
            return False
        listener.on_error(message)
        return True


class TranscriptBuffer:
    """Thread-safe accumulation of final utterances for one call."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._utterances: list[str] = []

    def append(self, text: str) -> None:
        text = text.strip()
        if text:
            with self._lock:
                self._utterances.append(text)

    def text(self) -> str:
        with self._lock:
            return " ".join(self._utterances)

    def clear(self) -> None:
        with self._lock:
            self._utterances.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._utterances)
