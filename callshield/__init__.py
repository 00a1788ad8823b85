# callshield/__init__.py
# =======================
# CallShield — real-time phone-call scam risk engine
#
# Packages:
#   - risk:   pattern scoring engine and caller-number heuristic
#   - fusion: temporal risk arbitration and producers
#   - audio:  recording acquisition, normalization, trust signals
#   - stt:    streaming recognition seam
#   - call:   call lifecycle controller and backup timer
#   - api:    FastAPI bridge and webhook forwarding

__version__ = "1.0.0"
