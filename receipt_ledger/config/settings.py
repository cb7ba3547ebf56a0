"""
Configuration Management for Receipt Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here. Each external dependency gets its
own settings group so a partially configured install (for example OCR
without Google Sheets) still loads the parts it has.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MindeeSettings(BaseSettings):
    """Mindee OCR service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MINDEE_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Mindee API key"
    )


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
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet holding the transaction log"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
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


class HouseholdSettings(BaseSettings):
    """
    The household this install books into.

    A household has exactly two parties. "self" is the person operating
    this session; "other" is the housemate.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOUSEHOLD_",
        extra="ignore"
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Household identifier used to scope the transaction log"
    )
    self_party: str = Field(
        ...,
        min_length=1,
        description="Party identifier of the session user"
    )
    other_party: str = Field(
        ...,
        min_length=1,
        description="Party identifier of the housemate"
    )

    @model_validator(mode='after')
    def validate_distinct_parties(self) -> 'HouseholdSettings':
        if self.self_party == self.other_party:
            raise ValueError("The two household parties must have different identifiers")
        if "both" in (self.self_party, self.other_party):
            raise ValueError("'both' is reserved for split expenses and cannot be a party id")
        return self


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

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )
    min_image_dimension: int = Field(
        default=300,
        ge=1,
        description="Smallest side (px) below which a receipt photo is flagged as low resolution"
    )

    # Money
    currency_code: str = Field(
        default="EUR",
        min_length=3,
        max_length=3,
        description="ISO currency code of all amounts in the ledger"
    )

    # External calls
    external_call_attempts: int = Field(
        default=3,
        ge=1,
        le=5,
        description="Attempts per external call (OCR, storage) before the error is surfaced"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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
    def mindee(self) -> MindeeSettings:
        return MindeeSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def household(self) -> HouseholdSettings:
        return HouseholdSettings()

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

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries with the failure message. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    groups = {
        "mindee": lambda: settings.mindee,
        "google_sheets": lambda: settings.google_sheets,
        "household": lambda: settings.household,
        "app": lambda: settings.app,
    }

    for name, load in groups.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
