"""
Configuration Management for Finanzas Pro

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The aggregation engine reads its business constants (labels, bucketing
threshold, rest day) from FinanceSettings so they are visible in one place
instead of being scattered through the reporting code.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per collection
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    fixed_expenses_sheet_name: str = Field(
        default="FixedExpenses",
        description="Name of the sheet for fixed expense templates"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for category labels"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class FinanceSettings(BaseSettings):
    """
    Business rules for the aggregation engine.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANZAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Labels
    default_category: str = Field(
        default="Otros",
        description="Category used when a transaction has none"
    )
    fixed_expense_category: str = Field(
        default="Fijos",
        description="Category for processed fixed expenses without their own"
    )
    cash_payment_method: str = Field(
        default="Efectivo",
        description="Payment method counted as cash in the cash split"
    )
    unspecified_payment_method: str = Field(
        default="Sin especificar",
        description="Bucket for transactions recorded before payment methods existed"
    )

    # Reporting rules
    monthly_bucket_threshold_days: int = Field(
        default=60,
        ge=1,
        description="Ranges spanning more days than this are bucketed by month"
    )
    rest_weekday: int = Field(
        default=6,
        ge=0,
        le=6,
        description="Weekday excluded from business days (Monday=0, Sunday=6)"
    )
    top_expenses_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many expenses the dashboard lists"
    )
    recent_notices_limit: int = Field(
        default=50,
        ge=1,
        description="How many store notices are kept for display"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def finance(self) -> FinanceSettings:
        return FinanceSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


@lru_cache()
def get_finance_settings() -> FinanceSettings:
    """Business rules used by the pure reporting functions (cached)."""
    return get_settings().finance


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        _ = settings.finance
        results["finance"] = True
    except Exception as e:
        results["finance"] = False
        results["finance_error"] = str(e)

    return results
