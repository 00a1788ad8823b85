"""
callshield/risk/scorer.py
==========================
Pattern Scoring Engine — CallShield

Responsibility:
    - Accept arbitrary text (one partial or final utterance, or a whole-call
      transcript) and return a deterministic ScamAnalysisResult
    - Score every scam category by substring containment of its weighted
      phrases, with a multi-match bonus and a per-category cap
    - Add a one-time bonus for each indicator family that matches
    - Select the primary threat category and the detected languages
    - Render the human-readable report

Scoring:
    - category raw   = round(sum(weights) * (1 + 0.2 * (matches - 1)))
    - contribution   = min(40, raw)
    - total          = sum(contributions) + indicator bonuses
    - score          = total clamped to [0, 100]

Every category is scanned regardless of the language of the input.
Given the same text the result is identical across calls; there is no
randomness and no shared mutable state, so concurrent calls are safe.

This module does NOT:
    - Arbitrate between producers (that is fusion/arbitrator.py)
    - Apply recognizer-confidence or keyword adjustments (fusion/producers.py)
    - Perform speech recognition
"""

import logging
import re

from callshield.errors import AnalysisFault
from callshield.risk.lexicon import CATEGORY_PHRASES, INDICATOR_BONUS, INDICATOR_TERMS
from callshield.risk.report import build_degraded_report, build_report
from callshield.risk.signals import (
    MatchedPattern,
    ScamAnalysisResult,
    ScamCategory,
)

logger = logging.getLogger("callshield.risk.scorer")


CATEGORY_CAP: int = 40
MULTI_MATCH_STEP: float = 0.2
MIN_SCORE: int = 0
MAX_SCORE: int = 100

# Neutral score reported when analysis itself fails
FALLBACK_SCORE: int = 30

_DEVANAGARI = re.compile(r"[ऀ-ॿ]")
_TELUGU = re.compile(r"[ఀ-౿]")
_LATIN = re.compile(r"[a-zA-Z]")

# Romanized regional dictionaries imply the spoken language
_CATEGORY_LANGUAGES: dict[ScamCategory, str] = {
    ScamCategory.HINDI_REGIONAL: "Hindi",
    ScamCategory.HINGLISH_MIXED: "Hindi",
    ScamCategory.TELUGU_REGIONAL: "Telugu",
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_text(text: str | None) -> ScamAnalysisResult:
    """
    Analyse text for scam patterns.

    Never raises: an internal fault yields the degraded fallback result
    (score 30, ``degraded=True``) instead.

    Args:
        text: Utterance or transcript. ``None`` and blank text score 0.

    Returns:
        ScamAnalysisResult with score in [0, 100].
    """
    try:
        return _analyse(text)
    except Exception as exc:
        logger.error("Pattern analysis failed: %s", exc, exc_info=True)
        return fallback_result(str(exc) or type(exc).__name__)


def fallback_result(reason: str) -> ScamAnalysisResult:
    """Neutral result used when analysis cannot complete."""
    return ScamAnalysisResult(
        score=FALLBACK_SCORE,
        matched_patterns=(),
        category_breakdown={},
        primary_category=ScamCategory.UNKNOWN,
        report_text=build_degraded_report(FALLBACK_SCORE, reason),
        languages_detected=frozenset(),
        degraded=True,
    )


# ---------------------------------------------------------------------------
# Scoring steps
# ---------------------------------------------------------------------------


def _analyse(text: str | None) -> ScamAnalysisResult:
    if text is not None and not isinstance(text, str):
        raise AnalysisFault(f"Expected text, got {type(text).__name__}")

    normalized = (text or "").strip().lower()

    matched: list[MatchedPattern] = []
    breakdown: dict[ScamCategory, int] = {}
    total = 0

    for category, phrases in CATEGORY_PHRASES.items():
        raw, hits = _score_category(normalized, category, phrases)
        breakdown[category] = raw
        matched.extend(hits)
        total += min(CATEGORY_CAP, raw)

    for kind, terms in INDICATOR_TERMS.items():
        hit = _first_indicator(normalized, terms)
        if hit is not None:
            bonus = INDICATOR_BONUS[kind]
            total += bonus
            matched.append(MatchedPattern(kind.value, hit, bonus))

    score = min(max(total, MIN_SCORE), MAX_SCORE)
    primary = _primary_category(breakdown)
    languages = _detect_languages(text or "", breakdown)

    result = ScamAnalysisResult(
        score=score,
        matched_patterns=tuple(matched),
        category_breakdown=breakdown,
        primary_category=primary,
        report_text=build_report(score, primary, breakdown, matched, languages),
        languages_detected=languages,
    )

    if matched:
        logger.info(
            "Scam analysis: score=%d primary=%s patterns=%d",
            score, primary.value, len(matched),
        )
    else:
        logger.debug("Scam analysis: no patterns matched.")
    return result


def _score_category(
    normalized: str,
    category: ScamCategory,
    phrases,
) -> tuple[int, list[MatchedPattern]]:
    """
    Score one category dictionary.

    Returns:
        (raw score before capping, matched evidence in dictionary order).
    """
    hits = [
        MatchedPattern(category.value, phrase, weight)
        for phrase, weight in phrases.items()
        if phrase in normalized
    ]
    if not hits:
        return 0, hits
    weight_sum = sum(h.weight for h in hits)
    multiplier = 1 + MULTI_MATCH_STEP * (len(hits) - 1)
    return int(round(weight_sum * multiplier)), hits


def _first_indicator(normalized: str, terms: tuple[str, ...]) -> str | None:
    for term in terms:
        if term in normalized:
            return term
    return None


def _primary_category(breakdown: dict[ScamCategory, int]) -> ScamCategory:
    """Highest raw score wins; ties go to the earlier category."""
    primary = ScamCategory.UNKNOWN
    best = 0
    for category, raw in breakdown.items():
        if raw > best:
            primary, best = category, raw
    return primary


def _detect_languages(
    text: str,
    breakdown: dict[ScamCategory, int],
) -> frozenset[str]:
    languages: set[str] = set()
    if _LATIN.search(text):
        languages.add("English")
    if _DEVANAGARI.search(text):
        languages.add("Hindi")
    if _TELUGU.search(text):
        languages.add("Telugu")
    for category, language in _CATEGORY_LANGUAGES.items():
        if breakdown.get(category, 0) > 0:
            languages.add(language)
    return frozenset(languages)
