"""
callshield/risk/report.py
==========================
Analysis report rendering — CallShield

Turns a score, its category breakdown and evidence into the plain-text
report shown to the user. Also owns the score → tier label mapping shared
with the post-call summary.
"""

from typing import Mapping, Sequence

from callshield.risk.signals import MatchedPattern, ScamCategory

MAX_REPORTED_PATTERNS: int = 10

# (exclusive lower bound, label), highest first
_TIERS: tuple[tuple[int, str], ...] = (
    (90, "CRITICAL THREAT"),
    (70, "HIGH RISK"),
    (40, "MODERATE RISK"),
    (20, "LOW-MODERATE RISK"),
)
_LOWEST_TIER = "LOW RISK"

# Post-call summary wording, keyed the same way as alert levels.
_FINAL_REPORTS: tuple[tuple[int, str], ...] = (
    (70, "FINAL: High probability of scam call - Multiple risk factors detected"),
    (40, "FINAL: Moderate risk - Some suspicious patterns found"),
)
_FINAL_REPORT_LOW = "FINAL: Low risk - Call appears legitimate"

_SUMMARIES: tuple[tuple[int, str], ...] = (
    (70, "HIGH RISK CALL: Likely scam"),
    (40, "MEDIUM RISK: Some suspicious patterns"),
)
_SUMMARY_LOW = "LOW RISK: Call appears safe"


def risk_tier(score: int) -> str:
    for bound, label in _TIERS:
        if score > bound:
            return label
    return _LOWEST_TIER


def final_report_text(score: int) -> str:
    """Analysis text for the FINAL-RECORDING submission."""
    for bound, text in _FINAL_REPORTS:
        if score > bound:
            return text
    return _FINAL_REPORT_LOW


def call_summary(score: int) -> str:
    """One-line end-of-call summary delivered on the alert channel."""
    for bound, text in _SUMMARIES:
        if score > bound:
            return f"{text} - {score}% risk"
    return f"{_SUMMARY_LOW} - {score}% risk"


def build_report(
    score: int,
    primary: ScamCategory,
    breakdown: Mapping[ScamCategory, int],
    matched: Sequence[MatchedPattern],
    languages: frozenset[str] = frozenset(),
) -> str:
    """
    Render the multi-line report text.

    Only categories with a non-zero raw score appear in the breakdown.
    At most ``MAX_REPORTED_PATTERNS`` evidence lines are listed; the
    remainder is summarised as "... and N more patterns".
    """
    lines = [
        f"{risk_tier(score)} SCAM ANALYSIS",
        f"Risk Score: {score}%",
        f"Primary Threat: {primary.value}",
    ]
    if languages:
        lines.append(f"Languages: {', '.join(sorted(languages))}")

    active = [(c, s) for c, s in breakdown.items() if s > 0]
    if active:
        lines.append("")
        lines.append("THREAT BREAKDOWN:")
        for category, raw in active:
            lines.append(f"- {category.value}: {raw} points")

    if matched:
        lines.append("")
        lines.append(f"Detected Patterns ({len(matched)}):")
        for pattern in matched[:MAX_REPORTED_PATTERNS]:
            lines.append(f"- {pattern.describe()}")
        remaining = len(matched) - MAX_REPORTED_PATTERNS
        if remaining > 0:
            lines.append(f"... and {remaining} more patterns")
    else:
        lines.append("")
        lines.append("No scam patterns detected.")

    return "\n".join(lines)


def build_degraded_report(score: int, reason: str) -> str:
    return "\n".join([
        "ANALYSIS DEGRADED",
        f"Risk Score: {score}%",
        "Analysis failed - using fallback risk assessment",
        f"Reason: {reason}",
    ])
