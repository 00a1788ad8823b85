"""
callshield/risk/signals.py
===========================
Scam Analysis Types — CallShield

Responsibility:
    - Define the scam categories and indicator kinds the scorer recognises
    - Define the immutable evidence and result structures it returns
    - Serialize results for the HTTP bridge

This module does NOT:
    - Hold phrase dictionaries (that is lexicon.py)
    - Compute scores (that is scorer.py)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ScamCategory(str, Enum):
    """Scam families, in evaluation order. UNKNOWN marks 'no category matched'."""

    DIGITAL_ARREST = "DIGITAL_ARREST"
    TRAI_TELECOM = "TRAI_TELECOM"
    COURIER_CUSTOMS = "COURIER_CUSTOMS"
    INVESTMENT_FRAUD = "INVESTMENT_FRAUD"
    FAMILY_EMERGENCY = "FAMILY_EMERGENCY"
    ROMANCE_SCAM = "ROMANCE_SCAM"
    HINDI_REGIONAL = "HINDI_REGIONAL"
    TELUGU_REGIONAL = "TELUGU_REGIONAL"
    HINGLISH_MIXED = "HINGLISH_MIXED"
    UNKNOWN = "UNKNOWN"


class IndicatorKind(str, Enum):
    """Cross-cutting indicator term sets, in evaluation order."""

    URGENCY = "URGENCY"
    AUTHORITY = "AUTHORITY"
    FINANCIAL_RISK = "FINANCIAL_RISK"
    TECH_SUPPORT = "TECH_SUPPORT"


@dataclass(frozen=True)
class MatchedPattern:
    """One piece of evidence: a category phrase or an indicator term."""

    label: str
    phrase: str
    weight: int

    def describe(self) -> str:
        return f"[{self.label}] {self.phrase} (+{self.weight})"


@dataclass(frozen=True)
class ScamAnalysisResult:
    """
    Outcome of scoring one piece of text.

    ``category_breakdown`` holds the raw (uncapped) score of every category,
    zero included. ``degraded`` is set only on the fallback result produced
    when analysis itself fails.
    """

    score: int
    matched_patterns: tuple[MatchedPattern, ...]
    category_breakdown: Mapping[ScamCategory, int]
    primary_category: ScamCategory
    report_text: str
    languages_detected: frozenset[str] = field(default_factory=frozenset)
    degraded: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.category_breakdown, MappingProxyType):
            object.__setattr__(
                self, "category_breakdown",
                MappingProxyType(dict(self.category_breakdown)),
            )

    @property
    def evidence(self) -> list[str]:
        return [m.describe() for m in self.matched_patterns]

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "primary_category": self.primary_category.value,
            "category_breakdown": {
                c.value: s for c, s in self.category_breakdown.items()
            },
            "matched_patterns": self.evidence,
            "languages_detected": sorted(self.languages_detected),
            "report_text": self.report_text,
            "degraded": self.degraded,
        }
