"""Configuration package."""

from receipt_ledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    HouseholdSettings,
    MindeeSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "HouseholdSettings",
    "MindeeSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
