"""
Configuration Management for Flat Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here, and the
calculators receive it as constructor arguments. Nothing in the ledger
reaches for global state while computing a balance.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Rules for rent reconciliation and expense reporting."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    due_weekday: int = Field(
        default=3,
        ge=0,
        le=6,
        description="Weekday rent is due (0=Monday, 3=Thursday)"
    )
    payment_window_days_before: int = Field(
        default=7,
        ge=0,
        description="Days before the due date a payment still counts for that week"
    )
    payment_window_days_after: int = Field(
        default=3,
        ge=0,
        description="Days after the due date a late payment still counts"
    )
    default_lookback_days: int = Field(
        default=180,
        ge=1,
        description="Analysis window when no start date is configured"
    )
    analysis_start_date: Optional[str] = Field(
        default=None,
        description="Fallback analysis start date (ISO) if none is stored"
    )

    # Current-week status thresholds (fraction of amount due)
    paid_ratio: float = Field(
        default=0.95,
        gt=0.0,
        le=1.0,
        description="Paid at least this share of the amount due counts as paid"
    )
    overpaid_ratio: float = Field(
        default=1.1,
        ge=1.0,
        description="Paid at least this share of the amount due counts as overpaid"
    )

    # Autopayment advice
    autopayment_lookback_weeks: int = Field(
        default=8,
        ge=1,
        description="Recent weeks inspected to detect a recurring payment"
    )
    autopayment_correction_weeks: int = Field(
        default=8,
        ge=1,
        description="Weeks over which a suggested payment clears the balance"
    )

    currency: str = Field(
        default="NZD",
        min_length=3,
        max_length=3
    )
    power_category_slug: str = Field(
        default="power",
        description="Category used for the burn rate when none is given"
    )

    @field_validator('analysis_start_date')
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty env var as unset. Parsing happens at use time."""
        if v is None or not v.strip():
            return None
        return v.strip()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

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

    # Sheet names within the spreadsheet
    flatmates_sheet_name: str = Field(default="Flatmates")
    schedules_sheet_name: str = Field(default="PaymentSchedules")
    transactions_sheet_name: str = Field(default="Transactions")
    system_state_sheet_name: str = Field(default="SystemState")
    categories_sheet_name: str = Field(default="ExpenseCategories")
    expense_links_sheet_name: str = Field(default="ExpenseTransactions")
    audit_sheet_name: str = Field(default="AuditLog")

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


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    storage_backend: str = Field(
        default="google_sheets",
        pattern="^(memory|google_sheets)$",
        description="Where household data is read from"
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
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("ledger", "google_sheets", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
