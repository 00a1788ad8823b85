"""
callshield/fusion/alerts.py
============================
Threshold alerts — CallShield

Maps a newly raised risk score to a user-facing alert:

    > 80  CRITICAL    "CRITICAL SCAM: " + first 30 chars of the analysis
    > 60  HIGH        "HIGH RISK: "     + first 25 chars
    > 40  SUSPICIOUS  "SUSPICIOUS: "    + first 20 chars

Scores of 40 and below produce no alert.
"""

from typing import Callable

from callshield.events import AlertTier, RiskAlert

AlertChannel = Callable[[RiskAlert], None]

# (exclusive lower bound, tier, prefix, excerpt length)
_ALERT_LEVELS: tuple[tuple[int, AlertTier, str, int], ...] = (
    (80, AlertTier.CRITICAL, "CRITICAL SCAM: ", 30),
    (60, AlertTier.HIGH, "HIGH RISK: ", 25),
    (40, AlertTier.SUSPICIOUS, "SUSPICIOUS: ", 20),
)


def alert_for(score: int, analysis_text: str) -> RiskAlert | None:
    for bound, tier, prefix, length in _ALERT_LEVELS:
        if score > bound:
            return RiskAlert(tier, prefix + _excerpt(analysis_text, length), score)
    return None


def summary_alert(score: int, message: str) -> RiskAlert:
    return RiskAlert(AlertTier.SUMMARY, message, score)


def _excerpt(text: str, length: int) -> str:
    return (text or "")[:length]
