"""
Configuration Management for Budget Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

import warnings
from decimal import Decimal
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_JWT_SECRET = "your-secret-key-change-in-production"


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        default="sqlite:///./budget_tracker.db",
        description="SQLAlchemy database URL"
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )

    @field_validator('url')
    @classmethod
    def normalize_postgres_scheme(cls, v: str) -> str:
        """Hosted Postgres providers still hand out 'postgres://' URLs."""
        if v.startswith("postgres://"):
            return "postgresql://" + v[len("postgres://"):]
        return v


class AuthSettings(BaseSettings):
    """Bearer token configuration."""

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        min_length=8,
        description="HMAC secret used to sign tokens"
    )
    algorithm: str = Field(
        default="HS256",
        description="Token signing algorithm"
    )
    expires_minutes: int = Field(
        default=60 * 24 * 7,
        ge=1,
        description="Token lifetime in minutes (default 7 days)"
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
        description="Expose internal error messages in 500 responses"
    )
    cors_origins: str = Field(
        default="http://localhost:8080,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins"
    )

    # Plan rules
    percentage_tolerance: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Allowed distance of the percentage sum from 100"
    )
    default_needs_percentage: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    default_wants_percentage: Decimal = Field(default=Decimal("30"), ge=0, le=100)
    default_savings_percentage: Decimal = Field(default=Decimal("20"), ge=0, le=100)

    # Credentials
    password_min_length: int = Field(default=6, ge=1)
    password_max_length: int = Field(default=100, ge=8)

    @model_validator(mode='after')
    def validate_default_split(self) -> 'AppSettings':
        total = (
            self.default_needs_percentage
            + self.default_wants_percentage
            + self.default_savings_percentage
        )
        if abs(total - Decimal("100")) >= self.percentage_tolerance:
            raise ValueError("Default budget split must sum to 100")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_environment.lower() == "production"


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

    @property
    def database(self) -> DatabaseSettings:
        return DatabaseSettings()

    @property
    def auth(self) -> AuthSettings:
        auth = AuthSettings()
        if auth.secret == DEFAULT_JWT_SECRET and self.app.is_production:
            warnings.warn("Using the default JWT secret in production is insecure")
        return auth

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
    "<name>_error" entries for the sections that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("database", "auth", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
