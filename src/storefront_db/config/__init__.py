"""Configuration management: environment-driven settings.

Usage:
    >>> from storefront_db.config import load_settings, Settings, ConfigurationError
"""

from storefront_db.config.loader import (
    ConfigurationError,
    get_settings,
    load_backup_settings,
    load_settings,
)
from storefront_db.config.models import BackupSettings, Settings

__all__ = [
    "BackupSettings",
    "ConfigurationError",
    "Settings",
    "get_settings",
    "load_backup_settings",
    "load_settings",
]
