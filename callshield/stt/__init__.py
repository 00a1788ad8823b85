# callshield/stt/__init__.py
# ===========================
# Speech Recognition Seam — CallShield
#
# Responsibility:
#   - Contracts between a streaming recognizer and the call controller
#   - Per-call transcript accumulation

from callshield.stt.session import (  # noqa: F401
    PushedRecognitionSession,
    RecognitionSession,
    SpeechListener,
    TranscriptBuffer,
    language_name,
)
