# callshield/fusion/__init__.py
# ==============================
# Temporal Risk Fusion — CallShield
#
# Responsibility:
#   - Arbitrate concurrent risk submissions into one per-call risk level
#   - Host the producers that feed it (speech, backup timer, phone, post-call)
#   - Raise threshold alerts

from callshield.fusion.arbitrator import (  # noqa: F401
    RiskArbitrator,
    RiskSnapshot,
    SubmissionOutcome,
)
