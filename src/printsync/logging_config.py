"""Unified logging configuration for the printsync service.

Every log entry, whether it comes from the session core or from uvicorn,
uses the same timestamped format.

Usage:
    At application startup:
    >>> from printsync.logging_config import configure_logging
    >>> configure_logging()

    When starting uvicorn:
    >>> from printsync.logging_config import get_uvicorn_log_config
    >>> uvicorn.run(app, log_config=get_uvicorn_log_config())

Configuration:
    - Log level: PRINTSYNC_LOG_LEVEL environment variable (default: INFO)
    - Access logs: PRINTSYNC_VERBOSE_LOGGING=true shows every HTTP request;
      otherwise only warnings from uvicorn.access are printed.
"""

import logging
import logging.config
import os
from typing import Any, Dict

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> str:
    """Get the log level from environment variable with fallback."""
    return (os.getenv("PRINTSYNC_LOG_LEVEL", "INFO") or "INFO").upper()


def get_logging_config() -> Dict[str, Any]:
    """Generate a unified logging configuration dictionary."""
    log_level = get_log_level()
    verbose_logging = os.getenv("PRINTSYNC_VERBOSE_LOGGING", "false").lower() in (
        "true",
        "1",
        "yes",
    )
    access_log_level = log_level if verbose_logging else "WARNING"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
            "access": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["default"], "level": log_level, "propagate": False},
            "uvicorn.error": {"handlers": ["default"], "level": log_level, "propagate": False},
            "uvicorn.access": {
                "handlers": ["access"],
                "level": access_log_level,
                "propagate": False,
            },
            "httpx": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "printsync": {"handlers": ["default"], "level": log_level, "propagate": False},
        },
        "root": {"level": log_level, "handlers": ["default"]},
    }


def configure_logging() -> None:
    """Configure logging for the entire application.

    Call once at startup, before any other logging configuration.
    """
    logging.config.dictConfig(get_logging_config())
    logging.getLogger(__name__).debug("Logging configured at level %s", get_log_level())


def get_uvicorn_log_config() -> Dict[str, Any]:
    """Get uvicorn-specific log configuration.

    Used when starting uvicorn so request logs share the unified format.
    """
    return get_logging_config()
