"""Configuration module."""

from config.settings import (
    settings,
    Settings,
    ProviderCredentials,
    ResilienceSettings,
    CacheSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "settings",
    "Settings",
    "ProviderCredentials",
    "ResilienceSettings",
    "CacheSettings",
    "get_settings",
    "reload_settings",
]
