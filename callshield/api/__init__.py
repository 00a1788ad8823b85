# callshield/api/__init__.py
# ===========================
# HTTP Layer — CallShield
#
# Responsibility:
#   - FastAPI bridge between the host shell and the engine (events.py)
#   - Webhook forwarding of engine events (webhook.py)
