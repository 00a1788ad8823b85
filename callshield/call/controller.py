"""
callshield/call/controller.py
==============================
Call Lifecycle Controller — CallShield

Responsibility:
    - Translate telephony transitions into engine actions:
        RINGING  reset risk state, submit the caller-number heuristic
        OFFHOOK  reset if not already done at RINGING, start recording,
                 open the speech session, start the backup timer
        IDLE     stop the backup timer and speech session, stop recording,
                 queue post-call analysis on the executor
    - Route recognizer callbacks to the speech producer
    - Report user-visible status messages

Risk state is reset at RINGING so the caller-number reading is scored under
the new call generation; an outgoing call, which has no RINGING, resets at
OFFHOOK instead. Either way the reset happens once per call.

Telephony transitions are serialized by a lifecycle lock. An IDLE that
arrives while OFFHOOK is still acquiring a recording waits for it, then
tears down the timer, recognizer and recording that OFFHOOK started.

Live producers (speech and backup timer) run under the controller lock and
check that the call is still live, so once IDLE handling returns no further
live submission can reach the arbitrator. Post-call analysis carries the
generation of the call that ended and is rejected if a new call has begun.

This module does NOT:
    - Score text or numbers
    - Decide which risk reading wins
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any

from callshield.audio.recorder import RecordingAcquisitionMachine
from callshield.call.scheduler import RepeatingTimer, Timer, TimerFactory
from callshield.config import Settings
from callshield.events import CallStateChanged, EventSink, StatusMessage
from callshield.fusion.alerts import AlertChannel
from callshield.fusion.arbitrator import RiskArbitrator, SubmissionOutcome
from callshield.fusion.producers import (
    BackupAnalyzer,
    DeepAnalysisReport,
    DeepCallAnalyzer,
    Scorer,
    SpeechProducer,
    submit_phone_risk,
)
from callshield.risk.scorer import score_text
from callshield.stt.session import RecognitionSession, TranscriptBuffer, language_name
from callshield.validation import (
    UNKNOWN_NUMBER,
    CallState,
    is_unknown_number,
    normalize_phone_number,
    parse_call_state,
)

logger = logging.getLogger("callshield.call.controller")

RECORDING_FAILED: str = "Recording failed, continuing with monitoring"


def _default_timer_factory(initial_delay: float, interval: float, callback) -> Timer:
    return RepeatingTimer(initial_delay, interval, callback)


class CallLifecycleController:
    def __init__(
        self,
        arbitrator: RiskArbitrator,
        recorder: RecordingAcquisitionMachine,
        recognizer: RecognitionSession,
        sink: EventSink,
        alerts: AlertChannel | None = None,
        settings: Settings | None = None,
        executor: Executor | None = None,
        timer_factory: TimerFactory | None = None,
        scorer: Scorer = score_text,
        deep_analyzer: DeepCallAnalyzer | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._arbitrator = arbitrator
        self._recorder = recorder
        self._recognizer = recognizer
        self._sink = sink
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._settings.deep_analysis_workers,
            thread_name_prefix="deep-analysis",
        )
        self._timer_factory = timer_factory or _default_timer_factory

        self._speech = SpeechProducer(arbitrator, scorer, on_status=self._status)
        self._backup = BackupAnalyzer(arbitrator)
        self._deep = deep_analyzer or DeepCallAnalyzer(arbitrator, alerts, scorer)
        self._transcript = TranscriptBuffer()

        self._lifecycle_lock = threading.Lock()
        self._lock = threading.RLock()
        self._state = CallState.IDLE
        self._number = UNKNOWN_NUMBER
        self._generation = arbitrator.generation
        self._reset_done = False
        self._live = False
        self._timer: Timer | None = None

    # ------------------------------------------------------------------
    # Telephony transitions
    # ------------------------------------------------------------------

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_live(self) -> bool:
        return self._live

    def handle_call_state(
        self,
        state: str | CallState,
        phone_number: str | None = None,
    ) -> Future | None:
        """
        Apply a telephony transition.

        Raises:
            ConfigurationError: If ``state`` is not a known call state.

        Returns:
            The post-call analysis future on IDLE after an answered call,
            otherwise None.
        """
        call_state = parse_call_state(state)
        logger.info("Call state %s (%s)", call_state.value,
                    normalize_phone_number(phone_number))

        with self._lifecycle_lock:
            if call_state is CallState.RINGING:
                self._on_ringing(phone_number)
                return None
            if call_state is CallState.OFFHOOK:
                self._on_offhook(phone_number)
                return None
            return self._on_idle()

    def _on_ringing(self, phone_number: str | None) -> None:
        with self._lock:
            if self._live:
                # Call waiting: the live call keeps its generation.
                logger.info("Incoming call while another call is live; not resetting.")
                self._sink(CallStateChanged(normalize_phone_number(phone_number),
                                            CallState.RINGING.value))
                return
            self._begin_call(phone_number)
            self._state = CallState.RINGING
            number, generation = self._number, self._generation

        self._sink(CallStateChanged(number, CallState.RINGING.value))
        submit_phone_risk(self._arbitrator, number, generation)

    def _on_offhook(self, phone_number: str | None) -> None:
        with self._lock:
            if self._live:
                logger.debug("Duplicate OFFHOOK ignored.")
                return
            if not self._reset_done:
                self._begin_call(phone_number)
            elif not is_unknown_number(phone_number):
                self._number = normalize_phone_number(phone_number)
            self._state = CallState.OFFHOOK
            number = self._number

        self._sink(CallStateChanged(number, CallState.OFFHOOK.value))

        result = self._recorder.start(number)
        if not result.ok:
            logger.warning("Recording unavailable: %s", result.message)
            self._status(RECORDING_FAILED)

        with self._lock:
            self._live = True
        self._recognizer.start(self)

        timer = self._timer_factory(
            self._settings.backup_initial_delay,
            self._settings.backup_interval,
            self._on_backup_tick,
        )
        with self._lock:
            self._timer = timer
        timer.start()

    def _on_idle(self) -> Future | None:
        with self._lock:
            answered = self._state is CallState.OFFHOOK
            self._live = False
            self._reset_done = False
            self._state = CallState.IDLE
            timer, self._timer = self._timer, None
            number, generation = self._number, self._generation
            transcript = self._transcript.text()

        self._sink(CallStateChanged(number, CallState.IDLE.value))
        if not answered:
            return None

        if timer is not None:
            timer.cancel()
        self._recognizer.stop()
        recording_path = self._recorder.stop()

        logger.info("Call ended; queuing post-call analysis (generation %d)", generation)
        return self._executor.submit(
            self._run_deep_analysis, transcript, number, recording_path, generation,
        )

    def _begin_call(self, phone_number: str | None) -> None:
        self._number = normalize_phone_number(phone_number)
        self._generation = self._arbitrator.reset()
        self._reset_done = True
        self._backup.reset()
        self._transcript.clear()

    # ------------------------------------------------------------------
    # Recognizer callbacks (SpeechListener)
    # ------------------------------------------------------------------

    def on_partial(self, text: str, language: str | None = None) -> SubmissionOutcome | None:
        with self._lock:
            if not self._live:
                logger.debug("Partial result after call end dropped.")
                return None
            return self._speech.on_partial(text, self._generation)

    def on_final(
        self,
        text: str,
        language: str | None = None,
        confidence: float | None = None,
    ) -> SubmissionOutcome | None:
        with self._lock:
            if not self._live:
                logger.debug("Final result after call end dropped.")
                return None
            logger.debug("Final utterance (%s): %s", language_name(language), text)
            self._transcript.append(text or "")
            return self._speech.on_final(text, confidence, self._generation)

    def on_error(self, message: str) -> None:
        # Recognizer errors are not user-visible.
        logger.warning("Speech recognition error: %s", message)

    # ------------------------------------------------------------------
    # Backup timer and post-call analysis
    # ------------------------------------------------------------------

    def _on_backup_tick(self) -> None:
        with self._lock:
            if not self._live:
                return
            self._backup.tick(self._generation)

    def _run_deep_analysis(
        self,
        transcript: str,
        phone_number: str,
        recording_path: str | None,
        generation: int,
    ) -> DeepAnalysisReport | None:
        try:
            return self._deep.analyze(transcript, phone_number, recording_path, generation)
        except Exception as exc:
            logger.error("Post-call analysis failed: %s", exc, exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Status and shutdown
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        snapshot = self._arbitrator.snapshot()
        with self._lock:
            return {
                "call_state": self._state.value,
                "phone_number": self._number,
                "generation": self._generation,
                "live": self._live,
                "recording": self._recorder.is_recording,
                "recording_path": self._recorder.current_path,
                "max_score": snapshot.max_score,
                "last_analysis_text": snapshot.last_analysis_text,
                "backup_checks": self._backup.checks,
            }

    def shutdown(self, wait: bool = True) -> None:
        """End any live call, release capture and stop the executor."""
        with self._lifecycle_lock:
            with self._lock:
                live = self._live
            if live:
                self._on_idle()
        self._recorder.cleanup()
        self._executor.shutdown(wait=wait)
        logger.info("Call controller shut down.")

    def _status(self, message: str) -> None:
        self._sink(StatusMessage(message))
