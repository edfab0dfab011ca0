"""Utility package for general-purpose helpers.

Provides environment configuration and session settings.
"""

from .env import (
    SessionSettings,
    get_config_dir,
    get_env_bool,
    get_env_float,
    get_env_int,
    load_settings,
)

__all__ = [
    "SessionSettings",
    "get_config_dir",
    "get_env_bool",
    "get_env_float",
    "get_env_int",
    "load_settings",
]
