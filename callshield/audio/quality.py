"""
callshield/audio/quality.py
============================
Recording Trust Signals — CallShield

Responsibility:
    - Derive coarse trust signals from a normalized call recording
    - noise_level / call_stability: "low" | "medium" | "high"
    - speech_naturalness: "normal" | "suspicious" (unnaturally regular pitch,
      typical of TTS or replayed robocall audio)

Post-call analysis adds a fixed bonus when speech is suspicious.

This module does NOT:
    - Decode containers (input is normalized 16 kHz mono WAV)
    - Score transcripts
"""

import io
import logging
import wave
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger("callshield.audio.quality")

SAMPLE_RATE: int = 16000
FRAME_SIZE: int = 1600  # 100 ms
WINDOW_SIZE: int = 16000  # 1 s
MAX_WINDOWS: int = 10

_NOISE_THRESHOLD_HIGH: float = 0.08
_NOISE_THRESHOLD_MEDIUM: float = 0.03

# Coefficient of variation of per-frame zero-crossing rate
_STABILITY_CV_LOW: float = 1.5
_STABILITY_CV_MEDIUM: float = 0.8

_REGULARITY_SUSPICIOUS: float = 0.92
_PITCH_LAG_MIN: int = 32  # 2 ms
_PITCH_LAG_MAX: int = 800  # 50 ms


@dataclass(frozen=True)
class AudioTrustSignals:
    noise_level: str = "medium"
    call_stability: str = "medium"
    speech_naturalness: str = "normal"

    @property
    def suspicious(self) -> bool:
        return self.speech_naturalness == "suspicious"


def assess_audio_trust(wav_bytes: bytes) -> AudioTrustSignals:
    """
    Compute trust signals for normalized WAV bytes.

    Undecodable input yields neutral defaults with a warning.
    """
    try:
        pcm = _wav_to_float(wav_bytes)
    except (wave.Error, EOFError, ValueError) as exc:
        logger.warning("Audio trust analysis failed: %s; using defaults.", exc)
        return AudioTrustSignals()

    signals = AudioTrustSignals(
        noise_level=_noise_level(pcm),
        call_stability=_call_stability(pcm),
        speech_naturalness=_speech_naturalness(pcm),
    )
    logger.info("Audio trust signals: %s", signals)
    return signals


# ---------------------------------------------------------------------------
# Internal analyzers
# ---------------------------------------------------------------------------


def _wav_to_float(wav_bytes: bytes) -> np.ndarray:
    with wave.open(io.BytesIO(wav_bytes), "rb") as wf:
        width = wf.getsampwidth()
        raw = wf.readframes(wf.getnframes())
    if width != 2:
        raise ValueError(f"Expected 16-bit PCM, got {width * 8}-bit")
    return np.frombuffer(raw, dtype=np.int16).astype(np.float32) / 32768.0


def _frames(pcm: np.ndarray, size: int) -> np.ndarray:
    """Non-overlapping frames as rows; a trailing partial frame is dropped."""
    count = len(pcm) // size
    return pcm[: count * size].reshape(count, size)


def _noise_level(pcm: np.ndarray) -> str:
    """Mean RMS of the quietest fifth of frames approximates the noise floor."""
    frames = _frames(pcm, FRAME_SIZE)
    if len(frames) < 2:
        return "medium"

    rms = np.sort(np.sqrt(np.mean(frames ** 2, axis=1)))
    floor = float(np.mean(rms[: max(1, len(rms) // 5)]))

    if floor >= _NOISE_THRESHOLD_HIGH:
        return "high"
    if floor >= _NOISE_THRESHOLD_MEDIUM:
        return "medium"
    return "low"


def _call_stability(pcm: np.ndarray) -> str:
    """Dropouts and codec glitches show up as erratic zero-crossing rates."""
    frames = _frames(pcm, FRAME_SIZE)
    if len(frames) < 3:
        return "medium"

    crossings = np.abs(np.diff(np.sign(frames), axis=1)) > 0
    zcr = crossings.sum(axis=1) / FRAME_SIZE
    mean = float(np.mean(zcr))
    if mean == 0:
        return "low"

    cv = float(np.std(zcr)) / mean
    if cv >= _STABILITY_CV_LOW:
        return "low"
    if cv >= _STABILITY_CV_MEDIUM:
        return "medium"
    return "high"


def _speech_naturalness(pcm: np.ndarray) -> str:
    """Near-identical pitch lag in every window suggests synthetic speech."""
    windows = _frames(pcm, WINDOW_SIZE)[:MAX_WINDOWS]
    if len(windows) < 3:
        return "normal"

    lags = [_pitch_lag(w) for w in windows]
    lags = np.array([lag for lag in lags if lag is not None], dtype=np.float64)
    if len(lags) < 3:
        return "normal"

    mean = float(np.mean(lags))
    if mean == 0:
        return "normal"

    regularity = 1.0 - float(np.std(lags)) / mean
    return "suspicious" if regularity >= _REGULARITY_SUSPICIOUS else "normal"


def _pitch_lag(window: np.ndarray) -> int | None:
    """Strongest autocorrelation lag in the pitch range, relative to the 2 ms floor."""
    spectrum = np.fft.rfft(window, n=2 * len(window))
    autocorr = np.fft.irfft(spectrum * np.conj(spectrum))[: len(window)]
    if autocorr[0] <= 0:
        return None
    segment = autocorr[_PITCH_LAG_MIN:_PITCH_LAG_MAX] / autocorr[0]
    return int(np.argmax(segment))
