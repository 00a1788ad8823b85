"""
callshield/validation.py
=========================
Input normalization — CallShield

Responsibility:
    - Normalize phone numbers coming from the telephony layer
    - Parse call-state strings into ``CallState``
    - Bound scores to [0, 100] and confidences to [0.0, 1.0]
    - Produce filesystem-safe number fragments for recording filenames

Anything malformed is either normalized (numbers, scores, confidences) or
rejected with ``ConfigurationError`` (call states) so callers never crash
on bad input from the host.

This module does NOT:
    - Score anything
    - Touch the filesystem
"""

import logging
import re
from enum import Enum

from callshield.errors import ConfigurationError

logger = logging.getLogger("callshield.validation")

UNKNOWN_NUMBER: str = "unknown"
MIN_SCORE: int = 0
MAX_SCORE: int = 100

_FILENAME_UNSAFE = re.compile(r"[^0-9+]")


class CallState(str, Enum):
    """Telephony call states as reported by the host shell."""
    RINGING = "RINGING"
    OFFHOOK = "OFFHOOK"
    IDLE = "IDLE"


# ---------------------------------------------------------------------------
# Phone numbers
# ---------------------------------------------------------------------------

def normalize_phone_number(number: str | None) -> str:
    """
    Return a trimmed phone number, or ``"unknown"`` when absent.

    Withheld numbers arrive as ``None`` or an empty string from the host.
    """
    if number is None or not isinstance(number, str):
        return UNKNOWN_NUMBER
    cleaned = number.strip()
    return cleaned if cleaned else UNKNOWN_NUMBER


def is_unknown_number(number: str | None) -> bool:
    return normalize_phone_number(number) == UNKNOWN_NUMBER


def sanitize_number_for_filename(number: str | None) -> str:
    """Keep digits and '+' only; fall back to ``"unknown"``."""
    if is_unknown_number(number):
        return UNKNOWN_NUMBER
    cleaned = _FILENAME_UNSAFE.sub("", number)
    return cleaned if cleaned else UNKNOWN_NUMBER


# ---------------------------------------------------------------------------
# Call state
# ---------------------------------------------------------------------------

def parse_call_state(raw: str | CallState | None) -> CallState:
    """
    Parse a call-state string (case-insensitive).

    Raises:
        ConfigurationError: If the value is not RINGING, OFFHOOK or IDLE.
    """
    if isinstance(raw, CallState):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigurationError("Call state is missing")
    try:
        return CallState(raw.strip().upper())
    except ValueError:
        raise ConfigurationError(
            f"Unknown call state {raw!r}. "
            f"Must be one of {[s.value for s in CallState]}"
        )


# ---------------------------------------------------------------------------
# Scores and confidences
# ---------------------------------------------------------------------------

def clamp_score(score: int | float, source: str = "unknown") -> int:
    """
    Coerce a producer score into an integer in [0, 100].

    Out-of-range values are clamped with a warning rather than rejected.

    Raises:
        ConfigurationError: If the score is not numeric.
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ConfigurationError(
            f"Score from {source} is not numeric: {type(score).__name__}"
        )
    value = int(round(score))
    if value < MIN_SCORE or value > MAX_SCORE:
        logger.warning(
            "Score %s from %s outside [%d, %d]; clamping.",
            score, source, MIN_SCORE, MAX_SCORE,
        )
        value = max(MIN_SCORE, min(MAX_SCORE, value))
    return value


def clamp_confidence(confidence: float | None) -> float:
    """Recognizer confidence in [0.0, 1.0]; missing or invalid becomes 0.0."""
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    return max(0.0, min(1.0, float(confidence)))
