"""Utility modules for Content Flow."""

from .config import Settings, ConfigurationError, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "ConfigurationError",
]
