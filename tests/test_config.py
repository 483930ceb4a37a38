"""
Tests for configuration loading.
"""

import pytest
from pydantic import ValidationError

from household_ledger.config import (
    AppSettings,
    GoogleSheetsSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "STORAGE_BACKEND",
        "LOG_LEVEL",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_CREDENTIALS_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self):
        settings = AppSettings()
        assert settings.api_prefix == "/api"
        assert settings.storage_backend == "google_sheets"

    def test_log_level_normalized(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert AppSettings().log_level == "DEBUG"

    def test_unknown_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()


class TestGoogleSheetsSettings:
    """Tests for the Sheets store configuration."""

    def test_requires_credentials(self):
        """Test one of credentials_path / credentials_json is required."""
        with pytest.raises(ValidationError):
            GoogleSheetsSettings(spreadsheet_id="sheet-id")

    def test_credentials_json_must_parse(self):
        with pytest.raises(ValidationError):
            GoogleSheetsSettings(spreadsheet_id="sheet-id", credentials_json="{not json")

    def test_table_names(self):
        """Test logical tables map to configurable sheet titles."""
        settings = GoogleSheetsSettings(
            spreadsheet_id="sheet-id",
            credentials_json="{}",
            consumers_sheet_name="Consumers",
        )
        assert settings.table_names == {
            "users": "users",
            "expenses": "expenses",
            "expense_consumers": "Consumers",
        }


class TestValidateAllSettings:
    """Tests for startup diagnostics."""

    def test_memory_backend_needs_no_google_settings(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        assert validate_all_settings() == {"app": True}

    def test_reports_missing_google_settings(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "google_sheets")
        results = validate_all_settings()
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results
