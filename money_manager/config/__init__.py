"""Configuration package."""

from money_manager.config.settings import (
    AppSettings,
    GeminiSettings,
    GroqSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "GroqSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
