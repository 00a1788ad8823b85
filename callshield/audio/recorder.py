"""
callshield/audio/recorder.py
=============================
Recording Acquisition State Machine — CallShield

Responsibility:
    - Start call capture by trying each strategy in STRATEGY_ORDER until one
      works, and report which one succeeded
    - Force speakerphone at full call volume for MIC_WITH_SPEAKER and revert
      it on failure, on stop and on cleanup
    - Stop capture and hand back the artifact path
    - Probe audio sources non-destructively

States:
    IDLE → PREPARING → ATTEMPTING(i) → ACTIVE → STOPPED
    Every strategy failing returns the machine to IDLE with no retry.

Each attempt yields an AttemptResult instead of propagating the backend's
exception, so the strategy loop is a plain iteration.

This module does NOT:
    - Decide when to record (that is call/controller.py)
    - Analyse the recording (that is fusion/producers.py)
"""

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from callshield.audio.backend import AudioRouting, CaptureBackend
from callshield.audio.strategies import (
    PROBE_SOURCES,
    STRATEGY_ORDER,
    AudioSource,
    RecordingStrategy,
    StrategyProfile,
)
from callshield.errors import AcquisitionError
from callshield.events import EventSink, RecordingStatusChanged, StatusMessage
from callshield.validation import sanitize_number_for_filename

logger = logging.getLogger("callshield.audio.recorder")

RECORDING_NOT_SUPPORTED: str = "Recording not supported on this device"
RECORDING_IN_PROGRESS: str = "Recording already in progress"
FILENAME_TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M%S"


class RecordingState(str, Enum):
    IDLE = "IDLE"
    PREPARING = "PREPARING"
    ATTEMPTING = "ATTEMPTING"
    ACTIVE = "ACTIVE"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class AttemptResult:
    strategy: RecordingStrategy
    ok: bool
    error: AcquisitionError | None = None


@dataclass
class RecordingSession:
    profile: StrategyProfile
    file_path: str
    attempts: list[AttemptResult] = field(default_factory=list)


@dataclass(frozen=True)
class StartResult:
    ok: bool
    strategy: RecordingStrategy | None = None
    label: str | None = None
    file_path: str | None = None
    attempts: tuple[AttemptResult, ...] = ()
    message: str | None = None


class RecordingAcquisitionMachine:
    """
    Owns exactly one capture session at a time.

    ``start`` and ``stop`` serialize on an internal lock, so a second start
    while capture is being set up or is running is rejected rather than
    interleaved.
    """

    def __init__(
        self,
        backend: CaptureBackend,
        routing: AudioRouting,
        recordings_dir: str,
        sink: EventSink | None = None,
        strategies: tuple[StrategyProfile, ...] = STRATEGY_ORDER,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._backend = backend
        self._routing = routing
        self._recordings_dir = recordings_dir
        self._sink = sink
        self._strategies = strategies
        self._clock = clock
        self._sleep = sleep

        self._lock = threading.Lock()
        self._state = RecordingState.IDLE
        self._attempt_index: int | None = None
        self._session: RecordingSession | None = None
        self._saved_volume: int | None = None
        self._speaker_forced = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def attempt_index(self) -> int | None:
        return self._attempt_index

    @property
    def is_recording(self) -> bool:
        return self._state is RecordingState.ACTIVE

    @property
    def current_path(self) -> str | None:
        session = self._session
        return session.file_path if session else None

    @property
    def current_strategy(self) -> RecordingStrategy | None:
        session = self._session
        return session.profile.strategy if session else None

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start(self, phone_number: str | None) -> StartResult:
        """
        Begin capture for a call, trying every strategy in order.

        Returns:
            StartResult with ``ok=True`` and the winning strategy, or
            ``ok=False`` with every attempt's failure.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Recording start rejected: start already in progress.")
            return StartResult(ok=False, message=RECORDING_IN_PROGRESS)
        try:
            if self._state in (
                RecordingState.ACTIVE,
                RecordingState.PREPARING,
                RecordingState.ATTEMPTING,
            ):
                logger.warning("Recording start rejected: state is %s.", self._state.value)
                return StartResult(ok=False, message=RECORDING_IN_PROGRESS)
            return self._start_locked(phone_number)
        finally:
            self._lock.release()

    def _start_locked(self, phone_number: str | None) -> StartResult:
        self._state = RecordingState.PREPARING
        try:
            stem = self._target_stem(phone_number)
        except OSError as exc:
            logger.error("Cannot prepare recordings directory: %s", exc)
            self._state = RecordingState.IDLE
            self._emit(StatusMessage(RECORDING_NOT_SUPPORTED))
            return StartResult(ok=False, message=f"Failed to prepare recording file: {exc}")

        attempts: list[AttemptResult] = []
        for index, profile in enumerate(self._strategies):
            self._state = RecordingState.ATTEMPTING
            self._attempt_index = index
            path = stem + profile.extension

            result = self._attempt(profile, path)
            attempts.append(result)
            if not result.ok:
                continue

            self._session = RecordingSession(profile, path, attempts)
            self._state = RecordingState.ACTIVE
            logger.info("Recording started with %s: %s", profile.label, path)
            self._emit(RecordingStatusChanged(True, path, profile.label))
            self._emit(StatusMessage(f"Recording: {profile.label}"))
            return StartResult(
                ok=True,
                strategy=profile.strategy,
                label=profile.label,
                file_path=path,
                attempts=tuple(attempts),
            )

        self._state = RecordingState.IDLE
        self._attempt_index = None
        logger.error("All %d recording strategies failed.", len(attempts))
        self._emit(StatusMessage(RECORDING_NOT_SUPPORTED))
        return StartResult(ok=False, attempts=tuple(attempts), message=RECORDING_NOT_SUPPORTED)

    def _attempt(self, profile: StrategyProfile, path: str) -> AttemptResult:
        logger.debug("Trying recording strategy %s", profile.strategy.value)
        try:
            if profile.force_speakerphone:
                self._force_speakerphone()
            self._backend.prepare(profile, path)
            if profile.settle_seconds > 0:
                self._sleep(profile.settle_seconds)
            self._backend.start()
        except Exception as exc:
            logger.info("Strategy %s failed: %s", profile.strategy.value, exc)
            self._release_backend()
            self._revert_speakerphone()
            return AttemptResult(
                profile.strategy,
                ok=False,
                error=AcquisitionError(profile.strategy.value, str(exc)),
            )
        return AttemptResult(profile.strategy, ok=True)

    # ------------------------------------------------------------------
    # Stop
    # ------------------------------------------------------------------

    def stop(self) -> str | None:
        """
        Stop an ACTIVE capture.

        Returns:
            The recording path, or None when nothing was recording or the
            backend failed to finalize the file.
        """
        with self._lock:
            if self._state is not RecordingState.ACTIVE or self._session is None:
                logger.warning("Stop requested with no active recording (state %s).",
                               self._state.value)
                return None

            session = self._session
            path: str | None = session.file_path
            try:
                self._backend.stop()
            except Exception as exc:
                logger.error("Failed to finalize recording %s: %s", path, exc)
                path = None
            finally:
                self._release_backend()
                self._revert_speakerphone()

            self._session = None
            self._attempt_index = None
            self._state = RecordingState.STOPPED
            self._emit(RecordingStatusChanged(False, path, session.profile.label))
            logger.info("Recording stopped: %s", path)
            return path

    def cleanup(self) -> None:
        """Release everything regardless of state; used on shutdown."""
        with self._lock:
            if self._state is RecordingState.ACTIVE:
                try:
                    self._backend.stop()
                except Exception as exc:
                    logger.warning("Stop during cleanup failed: %s", exc)
            self._release_backend()
            self._revert_speakerphone()
            self._session = None
            self._attempt_index = None
            self._state = RecordingState.IDLE

    # ------------------------------------------------------------------
    # Capability probe
    # ------------------------------------------------------------------

    def test_sources(self) -> dict[AudioSource, bool]:
        """Open and release each probe source; never touches the session."""
        results: dict[AudioSource, bool] = {}
        for source in PROBE_SOURCES:
            try:
                self._backend.probe(source)
                results[source] = True
            except Exception as exc:
                logger.debug("Source %s unavailable: %s", source.value, exc)
                results[source] = False
        logger.info(
            "Audio source probe: %d/%d available",
            sum(results.values()), len(results),
        )
        return results

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _target_stem(self, phone_number: str | None) -> str:
        """``<dir>/call_<timestamp>_<number>`` without extension."""
        os.makedirs(self._recordings_dir, exist_ok=True)
        stamp = self._clock().strftime(FILENAME_TIMESTAMP_FORMAT)
        number = sanitize_number_for_filename(phone_number)
        return os.path.join(self._recordings_dir, f"call_{stamp}_{number}")

    def _force_speakerphone(self) -> None:
        self._saved_volume = self._routing.call_volume()
        self._routing.set_speakerphone(True)
        self._routing.set_call_volume(self._routing.max_call_volume())
        self._speaker_forced = True

    def _revert_speakerphone(self) -> None:
        if not self._speaker_forced:
            return
        try:
            self._routing.set_speakerphone(False)
            if self._saved_volume is not None:
                self._routing.set_call_volume(self._saved_volume)
        except Exception as exc:
            logger.warning("Failed to restore audio routing: %s", exc)
        finally:
            self._speaker_forced = False
            self._saved_volume = None

    def _release_backend(self) -> None:
        try:
            self._backend.release()
        except Exception as exc:
            logger.warning("Capture release failed: %s", exc)

    def _emit(self, event) -> None:
        if self._sink is not None:
            self._sink(event)
