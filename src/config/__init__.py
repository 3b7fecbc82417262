"""Configuration package."""

from src.config.settings import (
    FinanceSettings,
    GoogleSheetsSettings,
    Settings,
    get_finance_settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "FinanceSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_finance_settings",
    "get_settings",
    "validate_all_settings",
]
