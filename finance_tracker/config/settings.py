"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so it is easy to see which external
dependencies exist and every required value is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
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

    # One worksheet per entity collection
    accounts_sheet_name: str = Field(default="Accounts")
    cards_sheet_name: str = Field(default="Cards")
    transactions_sheet_name: str = Field(default="Transactions")
    goals_sheet_name: str = Field(default="Goals")
    limits_sheet_name: str = Field(default="Limits")
    categories_sheet_name: str = Field(default="CustomCategories")

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

    def sheet_name_for(self, collection: str) -> str:
        """Worksheet name for a collection key (e.g. 'accounts')."""
        return getattr(self, f"{collection}_sheet_name")


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration for the assistant."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=512,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
    )

    # Display
    currency_symbol: str = Field(
        default="R$",
        description="Currency symbol used in user-facing messages"
    )
    date_format: str = Field(
        default="%d/%m/%Y",
        description="strftime format for dates in user-facing messages"
    )

    # Ledger behaviour
    limit_accrual_policy: Literal["settled", "always"] = Field(
        default="settled",
        description=(
            "'settled': only paid expenses count against limits; "
            "'always': pending expenses count too"
        )
    )
    default_alert_threshold: int = Field(
        default=80,
        ge=1,
        le=100,
        description="Alert threshold (%) for limits created without one"
    )

    # Reports
    cash_flow_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Months shown in the cash flow report"
    )
    invoice_urgent_days: int = Field(
        default=3,
        ge=0,
        description="Days before due date at which a card invoice is urgent"
    )
    invoice_warning_days: int = Field(
        default=7,
        ge=0,
        description="Days before due date at which a card invoice needs attention"
    )

    # Storage
    storage_backend: Literal["memory", "google_sheets"] = Field(
        default="memory",
        description="Which entity storage implementation to use"
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

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the ones that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("app", "gemini", "google_sheets"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
