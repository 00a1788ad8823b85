"""
callshield/risk/phone.py
=========================
Caller number heuristic — CallShield

Scores the incoming number at ringing time, before any speech exists.

    base                          10
    toll-free prefix (1800)      +20
    fewer than 10 characters     +25
    "0000" or "1111" run       +15
    unknown / withheld number  = 30

Result is capped at 100.
"""

import logging

from callshield.validation import is_unknown_number, normalize_phone_number

logger = logging.getLogger("callshield.risk.phone")

UNKNOWN_NUMBER_RISK: int = 30
BASE_NUMBER_RISK: int = 10
TOLL_FREE_PREFIXES: tuple[str, ...] = ("+1800", "1800")
TOLL_FREE_RISK: int = 20
SHORT_NUMBER_LENGTH: int = 10
SHORT_NUMBER_RISK: int = 25
REPEATED_DIGIT_RISK: int = 15

REPEATED_DIGIT_RUNS: tuple[str, ...] = ("0000", "1111")


def score_phone_number(phone_number: str | None) -> int:
    """Return the heuristic risk of a caller number in [0, 100]."""
    if is_unknown_number(phone_number):
        return UNKNOWN_NUMBER_RISK

    number = normalize_phone_number(phone_number)
    risk = BASE_NUMBER_RISK

    if number.startswith(TOLL_FREE_PREFIXES):
        risk += TOLL_FREE_RISK
    if len(number) < SHORT_NUMBER_LENGTH:
        risk += SHORT_NUMBER_RISK
    if any(run in number for run in REPEATED_DIGIT_RUNS):
        risk += REPEATED_DIGIT_RISK

    risk = min(risk, 100)
    logger.debug("Phone number risk for %s: %d", number, risk)
    return risk
