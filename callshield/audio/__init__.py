# callshield/audio/__init__.py
# =============================
# Audio Layer — CallShield
#
# Responsibility:
#   - Acquire call recordings through an ordered list of capture strategies
#   - Normalize finished recordings (pydub) for post-call analysis
#   - Derive audio trust signals (numpy)

from callshield.audio.strategies import (  # noqa: F401
    AudioSource,
    RecordingStrategy,
    StrategyProfile,
    STRATEGY_ORDER,
)
from callshield.audio.recorder import (  # noqa: F401
    RecordingAcquisitionMachine,
    RecordingState,
    StartResult,
)
