"""Tests for settings loading."""

import pytest
from decimal import Decimal

from pydantic import ValidationError as PydanticValidationError

from budget_tracker.config import (
    AppSettings,
    AuthSettings,
    DatabaseSettings,
    get_settings,
    validate_all_settings,
)


class TestDatabaseSettings:
    """Tests for DATABASE_* settings."""
    
    def test_default_is_local_sqlite(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert DatabaseSettings(_env_file=None).url.startswith("sqlite")
    
    def test_postgres_scheme_normalized(self):
        settings = DatabaseSettings(url="postgres://u:p@host/db")
        assert settings.url == "postgresql://u:p@host/db"
    
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/other.db")
        assert DatabaseSettings().url == "sqlite:///tmp/other.db"


class TestAuthSettings:
    """Tests for JWT_* settings."""
    
    def test_short_secret_rejected(self):
        with pytest.raises(PydanticValidationError):
            AuthSettings(secret="short")
    
    def test_default_lifetime_is_a_week(self, monkeypatch):
        monkeypatch.delenv("JWT_EXPIRES_MINUTES", raising=False)
        assert AuthSettings(_env_file=None).expires_minutes == 60 * 24 * 7


class TestAppSettings:
    """Tests for application settings."""
    
    def test_default_split_must_sum_to_100(self):
        with pytest.raises(PydanticValidationError):
            AppSettings(default_needs_percentage=Decimal("60"))
    
    def test_cors_origins_list(self):
        settings = AppSettings(cors_origins="http://a.test, http://b.test,")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]
    
    def test_is_production(self):
        assert AppSettings(app_environment="Production").is_production is True
        assert AppSettings(app_environment="development").is_production is False


class TestValidateAllSettings:
    """Tests for the startup settings report."""
    
    def test_reports_each_section(self):
        get_settings.cache_clear()
        results = validate_all_settings()
        assert results["database"] is True
        assert results["auth"] is True
        assert results["app"] is True
    
    def test_reports_broken_section(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "short")
        get_settings.cache_clear()
        results = validate_all_settings()
        assert results["auth"] is False
        assert "auth_error" in results
        get_settings.cache_clear()
