"""
Configuration Management for Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets row store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet holding the ledger"
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Path to Google service account credentials JSON"
    )
    credentials_json: Optional[str] = Field(
        default=None,
        description="Service account credentials as an inline JSON document"
    )

    # One worksheet per table
    users_sheet_name: str = Field(
        default="users",
        description="Name of the sheet for users"
    )
    expenses_sheet_name: str = Field(
        default="expenses",
        description="Name of the sheet for expenses"
    )
    consumers_sheet_name: str = Field(
        default="expense_consumers",
        description="Name of the sheet linking expenses to their consumers"
    )
    create_missing_sheets: bool = Field(
        default=False,
        description="Create a missing table sheet (with its header row) instead of failing"
    )

    @field_validator("credentials_path")
    @classmethod
    def validate_credentials_path(cls, v: Optional[str]) -> Optional[str]:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v

    @field_validator("credentials_json")
    @classmethod
    def validate_credentials_json(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"credentials_json is not valid JSON: {e}") from e
        return v

    @model_validator(mode="after")
    def require_credentials(self) -> "GoogleSheetsSettings":
        if not self.credentials_path and not self.credentials_json:
            raise ValueError(
                "Either GOOGLE_SHEETS_CREDENTIALS_PATH or "
                "GOOGLE_SHEETS_CREDENTIALS_JSON must be set"
            )
        return self

    @property
    def table_names(self) -> dict[str, str]:
        """Map of logical table name to worksheet title."""
        return {
            "users": self.users_sheet_name,
            "expenses": self.expenses_sheet_name,
            "expense_consumers": self.consumers_sheet_name,
        }


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
        description="Enable debug mode (human readable console logs)"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Storage
    storage_backend: Literal["google_sheets", "memory"] = Field(
        default="google_sheets",
        description="Row store implementation to use"
    )

    # HTTP
    api_prefix: str = Field(
        default="/api",
        description="Prefix for every API route"
    )

    # Security
    password_hash_rounds: int = Field(
        default=12,
        ge=4,
        le=16,
        description="bcrypt cost factor for stored password hashes"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


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

    # Sub-settings are loaded lazily so the memory backend runs
    # without any Google configuration.

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


def validate_all_settings() -> dict[str, object]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus `<name>_error` entries.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    settings = get_settings()

    try:
        app_settings = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)
        return results

    if app_settings.storage_backend == "google_sheets":
        try:
            _ = settings.google_sheets
            results["google_sheets"] = True
        except Exception as e:
            results["google_sheets"] = False
            results["google_sheets_error"] = str(e)

    return results
