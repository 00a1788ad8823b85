"""
callshield/fusion/producers.py
===============================
Risk producers — CallShield

Each producer turns one kind of signal into an arbitrator submission:

    SpeechProducer     streaming partial / final recognizer results
    BackupAnalyzer     periodic placeholder while the call is live
    submit_phone_risk  caller-number heuristic at ringing time
    DeepCallAnalyzer   one-shot analysis after the call ends

Every submission carries the call generation captured when the producer's
work began, so readings from a finished call cannot leak into the next one.

This module does NOT:
    - Decide which reading wins (that is arbitrator.py)
    - Schedule itself (that is call/controller.py and call/scheduler.py)
"""

import logging
from dataclasses import dataclass
from typing import Callable

from callshield.audio.normalizer import (
    AudioNormalizationError,
    AudioValidationError,
    load_recording,
)
from callshield.audio.quality import AudioTrustSignals, assess_audio_trust
from callshield.fusion.alerts import AlertChannel, summary_alert
from callshield.fusion.arbitrator import RiskArbitrator, SubmissionOutcome
from callshield.risk.phone import score_phone_number
from callshield.risk.report import call_summary, final_report_text
from callshield.risk.scorer import score_text
from callshield.risk.signals import ScamAnalysisResult
from callshield.validation import clamp_confidence, normalize_phone_number

logger = logging.getLogger("callshield.fusion.producers")

SOURCE_PARTIAL: str = "SPEECH-PARTIAL"
SOURCE_FINAL: str = "SPEECH-FINAL"
SOURCE_BACKUP: str = "TIMER-BACKUP"
SOURCE_PHONE: str = "PHONE-ANALYSIS"
SOURCE_RECORDING: str = "FINAL-RECORDING"

ANALYSIS_DEGRADED: str = "Analysis degraded"

# Streaming speech
PARTIAL_EMIT_THRESHOLD: int = 20
PARTIAL_EXCERPT_LENGTH: int = 30
CONFIDENCE_BOOST_THRESHOLD: float = 0.7
CONFIDENCE_BOOST: int = 10
HIGH_SIGNAL_FLOOR: int = 60
HIGH_SIGNAL_KEYWORDS: tuple[str, ...] = (
    "police", "arrest", "drugs", "money", "bank", "account", "suspicious",
    "investigation", "crime", "courier", "parcel", "customs",
)

# Backup timer
BACKUP_BASE_SCORE: int = 30
BACKUP_STEP: int = 2
BACKUP_CEILING: int = 85
BACKUP_SKIP_WINDOW_SECONDS: float = 10.0
BACKUP_SKIP_MIN_SCORE: int = 50

# Post-call
SYNTHETIC_SPEECH_BONUS: int = 10

Scorer = Callable[[str | None], ScamAnalysisResult]
StatusCallback = Callable[[str], None]


# ---------------------------------------------------------------------------
# Streaming speech
# ---------------------------------------------------------------------------


class SpeechProducer:
    """Scores recognizer output and submits it to the arbitrator."""

    def __init__(
        self,
        arbitrator: RiskArbitrator,
        scorer: Scorer = score_text,
        on_status: StatusCallback | None = None,
    ) -> None:
        self._arbitrator = arbitrator
        self._scorer = scorer
        self._on_status = on_status

    def on_partial(self, text: str | None, generation: int) -> SubmissionOutcome | None:
        """
        Submit an in-progress hypothesis when it scores above 20.

        Returns:
            The arbitrator outcome, or None when nothing was submitted.
        """
        if not text or not text.strip():
            return None
        result = self._score(text)
        if result.score <= PARTIAL_EMIT_THRESHOLD:
            logger.debug("Partial below threshold: %d", result.score)
            return None

        analysis = f"LIVE: {text.strip()[:PARTIAL_EXCERPT_LENGTH]}... (Risk: {result.score}%)"
        return self._arbitrator.submit(
            result.score, analysis, SOURCE_PARTIAL, generation=generation,
        )

    def on_final(
        self,
        text: str | None,
        confidence: float | None,
        generation: int,
    ) -> SubmissionOutcome | None:
        """
        Submit a committed utterance.

        Confident recognition (> 0.7) adds 10; any high-signal keyword
        lifts the score to at least 60.
        """
        if not text or not text.strip():
            return None
        confidence = clamp_confidence(confidence)
        score = adjust_final_score(self._score(text).score, text, confidence)

        analysis = (
            f'SPEECH: "{text.strip()}" '
            f"(Risk: {score}%, Conf: {int(confidence * 100)}%)"
        )
        return self._arbitrator.submit(score, analysis, SOURCE_FINAL, generation=generation)

    def _score(self, text: str) -> ScamAnalysisResult:
        result = self._scorer(text)
        if result.degraded and self._on_status is not None:
            self._on_status(ANALYSIS_DEGRADED)
        return result


def adjust_final_score(score: int, text: str, confidence: float) -> int:
    if confidence > CONFIDENCE_BOOST_THRESHOLD:
        score = min(100, score + CONFIDENCE_BOOST)
    lowered = text.lower()
    if any(keyword in lowered for keyword in HIGH_SIGNAL_KEYWORDS):
        score = max(score, HIGH_SIGNAL_FLOOR)
    return score


# ---------------------------------------------------------------------------
# Backup timer
# ---------------------------------------------------------------------------


class BackupAnalyzer:
    """
    Placeholder producer ticked by the backup timer.

    Emits ``min(30 + 2n, 85)`` on the n-th tick, tagged TIMER-BACKUP. It
    carries no evidence and is skipped while a recent reading above 50
    (within 10 s) is standing.
    """

    def __init__(self, arbitrator: RiskArbitrator) -> None:
        self._arbitrator = arbitrator
        self._checks = 0

    @property
    def checks(self) -> int:
        return self._checks

    def reset(self) -> None:
        self._checks = 0

    def tick(self, generation: int) -> SubmissionOutcome | None:
        self._checks += 1
        snapshot = self._arbitrator.snapshot()
        since_high = self._arbitrator.now() - snapshot.last_high_risk_timestamp

        if since_high < BACKUP_SKIP_WINDOW_SECONDS and snapshot.max_score > BACKUP_SKIP_MIN_SCORE:
            logger.debug("Backup tick %d skipped: recent high risk %d",
                         self._checks, snapshot.max_score)
            return None

        score = backup_score(self._checks)
        analysis = f"Monitoring speech... ({self._checks} checks) [placeholder]"
        return self._arbitrator.submit(score, analysis, SOURCE_BACKUP, generation=generation)


def backup_score(checks: int) -> int:
    return min(BACKUP_BASE_SCORE + BACKUP_STEP * checks, BACKUP_CEILING)


# ---------------------------------------------------------------------------
# Phone heuristic
# ---------------------------------------------------------------------------


def submit_phone_risk(
    arbitrator: RiskArbitrator,
    phone_number: str | None,
    generation: int,
) -> SubmissionOutcome:
    number = normalize_phone_number(phone_number)
    return arbitrator.submit(
        score_phone_number(number),
        f"Initial number analysis for {number}",
        SOURCE_PHONE,
        generation=generation,
    )


# ---------------------------------------------------------------------------
# Post-call analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeepAnalysisReport:
    score: int
    analysis_text: str
    outcome: SubmissionOutcome
    transcript_score: int
    phone_score: int
    audio: AudioTrustSignals | None = None


class DeepCallAnalyzer:
    """
    Final verdict for a finished call.

    score = max(whole-transcript score, phone heuristic), plus 10 when the
    recording's speech looks synthetic. Submitted as FINAL-RECORDING with
    the ending call's generation, followed by a one-line summary alert.
    """

    def __init__(
        self,
        arbitrator: RiskArbitrator,
        alerts: AlertChannel | None = None,
        scorer: Scorer = score_text,
        load_audio: Callable[[str], bytes] = load_recording,
        assess_audio: Callable[[bytes], AudioTrustSignals] = assess_audio_trust,
    ) -> None:
        self._arbitrator = arbitrator
        self._alerts = alerts
        self._scorer = scorer
        self._load_audio = load_audio
        self._assess_audio = assess_audio

    def analyze(
        self,
        transcript: str,
        phone_number: str | None,
        recording_path: str | None,
        generation: int,
    ) -> DeepAnalysisReport:
        transcript_score = self._scorer(transcript).score if transcript.strip() else 0
        phone_score = score_phone_number(phone_number)
        score = max(transcript_score, phone_score)

        audio = self._audio_signals(recording_path)
        if audio is not None and audio.suspicious:
            score = min(100, score + SYNTHETIC_SPEECH_BONUS)

        analysis = final_report_text(score)
        outcome = self._arbitrator.submit(
            score, analysis, SOURCE_RECORDING, generation=generation,
        )
        logger.info(
            "Post-call analysis: score=%d (transcript=%d phone=%d) outcome=%s",
            score, transcript_score, phone_score, outcome.value,
        )

        if outcome is not SubmissionOutcome.STALE and self._alerts is not None:
            self._alerts(summary_alert(score, call_summary(score)))

        return DeepAnalysisReport(
            score=score,
            analysis_text=analysis,
            outcome=outcome,
            transcript_score=transcript_score,
            phone_score=phone_score,
            audio=audio,
        )

    def _audio_signals(self, recording_path: str | None) -> AudioTrustSignals | None:
        if not recording_path:
            return None
        try:
            return self._assess_audio(self._load_audio(recording_path))
        except (AudioValidationError, AudioNormalizationError) as exc:
            logger.warning("Skipping audio analysis for %s: %s", recording_path, exc)
            return None
