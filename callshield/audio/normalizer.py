"""
callshield/audio/normalizer.py
===============================
Recording Normalizer — CallShield

Responsibility:
    - Validate a finished call recording (extension, presence, size, duration)
    - Decode it with pydub and convert to mono 16 kHz
    - Return normalized WAV bytes for post-call audio analysis

This module does NOT:
    - Capture audio (that is backend.py / recorder.py)
    - Judge audio quality (that is quality.py)
"""

import io
import logging
import os

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from callshield.errors import CallShieldError

logger = logging.getLogger("callshield.audio.normalizer")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Container extension → ffmpeg demuxer name
RECORDING_FORMATS: dict[str, str] = {
    ".m4a": "mp4",
    ".3gp": "3gp",
    ".wav": "wav",
}
TARGET_SAMPLE_RATE = 16000  # Hz
TARGET_CHANNELS = 1  # mono
MAX_DURATION_SECONDS = 3 * 60 * 60  # a call longer than 3 hours is not analysed
OUTPUT_FORMAT = "wav"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AudioValidationError(CallShieldError):
    """Raised when a recording file is missing, empty or undecodable."""
    pass


class AudioNormalizationError(CallShieldError):
    """Raised when conversion fails unexpectedly."""
    pass


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_recording_path(path: str) -> str:
    """
    Check the file exists, is non-empty and has a known container extension.

    Returns:
        The ffmpeg format name for the container.

    Raises:
        AudioValidationError: On any failed check.
    """
    if not path:
        raise AudioValidationError("Recording path is missing.")

    ext = _extract_extension(path)
    if ext not in RECORDING_FORMATS:
        raise AudioValidationError(
            f"Unsupported recording type '{ext}'. "
            f"Allowed: {', '.join(sorted(RECORDING_FORMATS))}"
        )
    if not os.path.isfile(path):
        raise AudioValidationError(f"Recording not found: {path}")
    if os.path.getsize(path) == 0:
        raise AudioValidationError(f"Recording is empty: {path}")
    return RECORDING_FORMATS[ext]


def _validate_duration(audio: AudioSegment) -> None:
    duration_seconds = len(audio) / 1000.0
    if duration_seconds == 0:
        raise AudioValidationError("Recording has zero duration.")
    if duration_seconds > MAX_DURATION_SECONDS:
        raise AudioValidationError(
            f"Recording duration ({duration_seconds:.1f}s) exceeds the "
            f"maximum analysed ({MAX_DURATION_SECONDS}s)."
        )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def load_recording(path: str) -> bytes:
    """
    Decode a call recording into mono 16 kHz WAV bytes.

    Raises:
        AudioValidationError:    File missing, empty, corrupt or too long.
        AudioNormalizationError: Unexpected decode or export failure.
    """
    fmt = validate_recording_path(path)

    try:
        audio = AudioSegment.from_file(path, format=fmt)
    except CouldntDecodeError:
        raise AudioValidationError(f"Recording is corrupt or could not be decoded: {path}")
    except Exception as exc:
        raise AudioNormalizationError(f"Unexpected error decoding recording: {exc}")

    _validate_duration(audio)

    if audio.channels != TARGET_CHANNELS:
        audio = audio.set_channels(TARGET_CHANNELS)
    if audio.frame_rate != TARGET_SAMPLE_RATE:
        audio = audio.set_frame_rate(TARGET_SAMPLE_RATE)

    try:
        buffer = io.BytesIO()
        audio.export(buffer, format=OUTPUT_FORMAT)
    except Exception as exc:
        raise AudioNormalizationError(f"Failed to export normalized recording: {exc}")

    logger.info("Normalized recording %s (%.1fs)", path, len(audio) / 1000.0)
    return buffer.getvalue()


def _extract_extension(path: str) -> str:
    return os.path.splitext(path)[1].lower()
