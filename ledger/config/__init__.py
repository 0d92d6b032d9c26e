"""Configuration package."""

from ledger.config.settings import (
    LedgerRulesSettings,
    LoggingSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "LedgerRulesSettings",
    "LoggingSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
