# callshield/risk/__init__.py
# ============================
# Pattern Scoring Engine — CallShield
#
# Responsibility:
#   - Score utterances and transcripts against the multilingual scam lexicon
#   - Score caller numbers heuristically
#   - Render analysis reports
#
# Public API:
#   - score_text()          — deterministic text analysis
#   - score_phone_number()  — ringing-time number heuristic

from callshield.risk.signals import (  # noqa: F401
    IndicatorKind,
    MatchedPattern,
    ScamAnalysisResult,
    ScamCategory,
)
from callshield.risk.scorer import score_text, fallback_result  # noqa: F401
from callshield.risk.phone import score_phone_number  # noqa: F401
