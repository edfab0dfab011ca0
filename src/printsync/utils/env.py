"""Environment-driven configuration for the printer session.

All runtime tuning is read from ``PRINTSYNC_*`` environment variables.
Invalid values never abort startup; they fall back to the documented default
with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    HTTP_TIMEOUT_SECONDS,
    NOTIFICATION_HISTORY_DEFAULT,
    POLL_INTERVAL_SECONDS,
)

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "PRINTSYNC_CONFIG_DIR"
POLL_INTERVAL_ENV = "PRINTSYNC_POLL_INTERVAL"
HTTP_TIMEOUT_ENV = "PRINTSYNC_HTTP_TIMEOUT"
AUTO_POLL_ENV = "PRINTSYNC_AUTO_POLL"
NOTIFICATION_HISTORY_ENV = "PRINTSYNC_NOTIFICATION_HISTORY"


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to configuration directory, creating it if needed.

    Priority:
        1. PRINTSYNC_CONFIG_DIR environment variable
        2. ~/.printsync (local default)
    """
    override = os.getenv(CONFIG_DIR_ENV)
    config_dir = Path(override) if override else Path.home() / ".printsync"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_env_bool(name: str, default: bool) -> bool:
    """Get boolean environment variable.

    Accepts 1/true/yes/on and 0/false/no/off (case-insensitive); anything
    else, including an empty string, yields the default.
    """
    raw = (os.getenv(name) or "").strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def get_env_float(name: str, default: float) -> float:
    """Get float environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid

    Returns:
        Float value from environment or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid float value for {name}: '{raw}'. Using default: {default}")
        return default


def get_env_int(name: str, default: int) -> int:
    """Get integer environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid

    Returns:
        Integer value from environment or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer value for {name}: '{raw}'. Using default: {default}")
        return default


@dataclass(slots=True)
class SessionSettings:
    """Resolved runtime settings for a printer session."""

    config_dir: Path
    poll_interval: float = POLL_INTERVAL_SECONDS
    http_timeout: float = HTTP_TIMEOUT_SECONDS
    auto_poll: bool = True
    notification_history: int = NOTIFICATION_HISTORY_DEFAULT


def load_settings() -> SessionSettings:
    """Build session settings from the environment."""
    poll_interval = get_env_float(POLL_INTERVAL_ENV, POLL_INTERVAL_SECONDS)
    if poll_interval <= 0:
        logger.warning(
            "Poll interval must be positive, got %s; using %s",
            poll_interval,
            POLL_INTERVAL_SECONDS,
        )
        poll_interval = POLL_INTERVAL_SECONDS

    return SessionSettings(
        config_dir=get_config_dir(),
        poll_interval=poll_interval,
        http_timeout=get_env_float(HTTP_TIMEOUT_ENV, HTTP_TIMEOUT_SECONDS),
        auto_poll=get_env_bool(AUTO_POLL_ENV, True),
        notification_history=max(
            1, get_env_int(NOTIFICATION_HISTORY_ENV, NOTIFICATION_HISTORY_DEFAULT)
        ),
    )
