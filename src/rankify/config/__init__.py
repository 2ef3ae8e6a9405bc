"""Configuration module for Rankify."""

from .settings import (
    ApiSettings,
    DatabaseSettings,
    NotificationSettings,
    ObservabilitySettings,
    Settings,
    SpotifySettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "DatabaseSettings",
    "NotificationSettings",
    "ObservabilitySettings",
    "Settings",
    "SpotifySettings",
    "get_settings",
]
