"""Configuration package for the file synchronizer."""

from .settings import (
    DatabaseSettings,
    SyncSettings,
    TransferSettings,
    LoggingSettings,
    AppSettings,
    get_settings,
    reload_settings
)

__all__ = [
    "DatabaseSettings",
    "SyncSettings",
    "TransferSettings",
    "LoggingSettings",
    "AppSettings",
    "get_settings",
    "reload_settings"
]
