"""
callshield/fusion/arbitrator.py
================================
Temporal Risk Fusion Arbitrator — CallShield

Responsibility:
    - Accept risk submissions from every producer (streaming speech, backup
      timer, phone heuristic, post-call analysis)
    - Decide whether each submission raises the call's risk, resurfaces a
      lower reading, or is suppressed
    - Emit RiskLevelChanged and threshold alerts after the state update
    - Reset per-call state and reject submissions from an earlier call

Rules, applied under one lock:
    1. score > max_score
           → max_score = score, remember the time, emit "<text> [<source tag>]"
    2. otherwise, more than the suppression window (30 s) since the last
       raise → emit "<text> [<source tag>]" without touching max_score
    3. otherwise suppress

A submission whose generation differs from the current call generation is
dropped and reported as STALE.

This module does NOT:
    - Compute scores (producers do)
    - Know about recording or telephony state
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from callshield.events import EventSink, RiskLevelChanged
from callshield.fusion.alerts import AlertChannel, alert_for
from callshield.validation import clamp_score

logger = logging.getLogger("callshield.fusion.arbitrator")

SUPPRESSION_WINDOW_SECONDS: float = 30.0


class SubmissionOutcome(str, Enum):
    RAISED = "RAISED"
    SURFACED = "SURFACED"
    SUPPRESSED = "SUPPRESSED"
    STALE = "STALE"


@dataclass(frozen=True)
class RiskSnapshot:
    max_score: int
    last_analysis_text: str
    last_high_risk_timestamp: float
    call_generation: int


class RiskArbitrator:
    """
    Single authority over per-call risk state.

    Thread-safe: producers on any thread may call ``submit`` concurrently.
    Events are emitted while the lock is held so their order matches the
    order of state changes; sinks must therefore be quick and must not call
    back into ``submit``.
    """

    def __init__(
        self,
        sink: EventSink,
        alerts: AlertChannel | None = None,
        clock: Callable[[], float] = time.monotonic,
        suppression_window: float = SUPPRESSION_WINDOW_SECONDS,
    ) -> None:
        self._sink = sink
        self._alerts = alerts
        self._clock = clock
        self._suppression_window = suppression_window
        self._lock = threading.RLock()

        self._max_score = 0
        self._last_analysis_text = ""
        self._last_high_risk_timestamp = 0.0
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def now(self) -> float:
        return self._clock()

    def snapshot(self) -> RiskSnapshot:
        with self._lock:
            return RiskSnapshot(
                max_score=self._max_score,
                last_analysis_text=self._last_analysis_text,
                last_high_risk_timestamp=self._last_high_risk_timestamp,
                call_generation=self._generation,
            )

    def reset(self) -> int:
        """Start a new call: clear state and return the new generation."""
        with self._lock:
            self._max_score = 0
            self._last_analysis_text = ""
            self._last_high_risk_timestamp = 0.0
            self._generation += 1
            generation = self._generation
        logger.info("Risk state reset for call generation %d", generation)
        return generation

    def submit(
        self,
        score: int,
        analysis_text: str,
        source_tag: str,
        timestamp: float | None = None,
        *,
        generation: int,
    ) -> SubmissionOutcome:
        """
        Offer a producer's reading.

        Args:
            score:         Producer score; clamped to [0, 100].
            analysis_text: Human-readable reason shown to the user.
            source_tag:    Producer identity (e.g. "SPEECH-FINAL").
            timestamp:     Monotonic seconds; defaults to the arbitrator clock.
            generation:    Call generation the reading was produced under.
        """
        score = clamp_score(score, source_tag)
        text = analysis_text or ""
        tagged = f"{text} [{source_tag}]"

        with self._lock:
            if generation != self._generation:
                logger.debug(
                    "Dropped stale %s submission (generation %d, current %d)",
                    source_tag, generation, self._generation,
                )
                return SubmissionOutcome.STALE

            now = self._clock() if timestamp is None else timestamp

            if score > self._max_score:
                self._max_score = score
                self._last_analysis_text = text
                self._last_high_risk_timestamp = now
                self._sink(RiskLevelChanged(score, tagged, self._generation))
                alert = alert_for(score, text)
                if alert is not None and self._alerts is not None:
                    self._alerts(alert)
                logger.info("Risk raised to %d by %s", score, source_tag)
                return SubmissionOutcome.RAISED

            if now - self._last_high_risk_timestamp > self._suppression_window:
                self._sink(RiskLevelChanged(score, tagged, self._generation))
                logger.debug("Surfaced %s reading %d (max %d)",
                             source_tag, score, self._max_score)
                return SubmissionOutcome.SURFACED

            logger.debug("Suppressed %s reading %d (max %d)",
                         source_tag, score, self._max_score)
            return SubmissionOutcome.SUPPRESSED
