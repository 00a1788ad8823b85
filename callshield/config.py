"""
callshield/config.py
=====================
Runtime settings — CallShield

Settings are read from the process environment, after ``python-dotenv``
has loaded any ``.env`` file in the working directory. Malformed values
fall back to their defaults with a warning.

Environment variables:
    CALLSHIELD_RECORDINGS_DIR          Recording output directory
    CALLSHIELD_LOG_LEVEL               Root log level (default INFO)
    CALLSHIELD_BACKUP_INITIAL_DELAY    Seconds before the first backup tick
    CALLSHIELD_BACKUP_INTERVAL         Seconds between backup ticks
    CALLSHIELD_SUPPRESSION_WINDOW      Seconds before a lower score resurfaces
    CALLSHIELD_DEEP_ANALYSIS_WORKERS   Post-call analysis thread count
    WEBHOOK_URL                        Optional event forwarding endpoint
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger("callshield.config")

DEFAULT_RECORDINGS_DIR: str = "./call_recordings"
DEFAULT_LOG_LEVEL: str = "INFO"
DEFAULT_BACKUP_INITIAL_DELAY: float = 3.0
DEFAULT_BACKUP_INTERVAL: float = 5.0
DEFAULT_SUPPRESSION_WINDOW: float = 30.0
DEFAULT_DEEP_ANALYSIS_WORKERS: int = 1


@dataclass(frozen=True)
class Settings:
    recordings_dir: str = DEFAULT_RECORDINGS_DIR
    log_level: str = DEFAULT_LOG_LEVEL
    backup_initial_delay: float = DEFAULT_BACKUP_INITIAL_DELAY
    backup_interval: float = DEFAULT_BACKUP_INTERVAL
    suppression_window: float = DEFAULT_SUPPRESSION_WINDOW
    deep_analysis_workers: int = DEFAULT_DEEP_ANALYSIS_WORKERS
    webhook_url: str | None = None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s.", name, raw, default)
        return default
    if value < 0:
        logger.warning("Negative %s=%r; using default %s.", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using default %s.", name, raw, default)
        return default
    if value < 1:
        logger.warning("%s must be >= 1, got %r; using default %s.", name, raw, default)
        return default
    return value


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build ``Settings`` from the environment.

    Args:
        dotenv: Load a ``.env`` file first (without overriding variables
            that are already set).
    """
    if dotenv:
        load_dotenv()

    webhook_url = os.getenv("WEBHOOK_URL", "").strip() or None

    settings = Settings(
        recordings_dir=os.getenv("CALLSHIELD_RECORDINGS_DIR", "").strip()
        or DEFAULT_RECORDINGS_DIR,
        log_level=os.getenv("CALLSHIELD_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        or DEFAULT_LOG_LEVEL,
        backup_initial_delay=_env_float(
            "CALLSHIELD_BACKUP_INITIAL_DELAY", DEFAULT_BACKUP_INITIAL_DELAY
        ),
        backup_interval=_env_float(
            "CALLSHIELD_BACKUP_INTERVAL", DEFAULT_BACKUP_INTERVAL
        ),
        suppression_window=_env_float(
            "CALLSHIELD_SUPPRESSION_WINDOW", DEFAULT_SUPPRESSION_WINDOW
        ),
        deep_analysis_workers=_env_int(
            "CALLSHIELD_DEEP_ANALYSIS_WORKERS", DEFAULT_DEEP_ANALYSIS_WORKERS
        ),
        webhook_url=webhook_url,
    )
    logger.debug("Loaded settings: %s", settings)
    return settings
