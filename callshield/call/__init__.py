# callshield/call/__init__.py
# ============================
# Call Lifecycle — CallShield
#
# Responsibility:
#   - Drive recording, speech and risk producers from telephony transitions
#   - Run the periodic backup timer

from callshield.call.controller import CallLifecycleController  # noqa: F401
from callshield.call.scheduler import RepeatingTimer  # noqa: F401
