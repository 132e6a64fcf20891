"""Configuration package."""

from haseela.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LocalCacheSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LocalCacheSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
