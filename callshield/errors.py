"""
callshield/errors.py
=====================
Error taxonomy — CallShield

Every failure raised by CallShield derives from ``CallShieldError`` so the
HTTP bridge and the lifecycle controller can map them in one place.

Categories:
    - ConfigurationError: malformed or absent input (empty transcript,
      unknown call state, out-of-range score). Normalized, never fatal.
    - AcquisitionError: one capture strategy could not start. Carried inside
      an ``AttemptResult`` rather than propagated.
    - AnalysisFault: the pattern scorer hit an internal fault. Surfaced as a
      degraded analysis result with a neutral score.

Stale-generation submissions are not errors at all; the arbitrator reports
them as ``SubmissionOutcome.STALE``.
"""


class CallShieldError(Exception):
    """Base class for all CallShield errors."""
    pass


class ConfigurationError(CallShieldError):
    """Raised when an input or setting is malformed or missing."""
    pass


class AcquisitionError(CallShieldError):
    """Raised when a single recording strategy fails to start."""

    def __init__(self, strategy: str, message: str) -> None:
        self.strategy = strategy
        self.message = message
        super().__init__(f"Strategy {strategy} failed: {message}")


class AnalysisFault(CallShieldError):
    """Raised inside the scorer when analysis cannot complete."""
    pass
