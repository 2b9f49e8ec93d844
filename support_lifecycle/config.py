# support_lifecycle/config.py
"""
Centralized configuration with validation.

Uses pydantic-settings to load and validate environment variables at startup.
Policy knobs (retention windows, backup cadence, audit flags) are NOT read
from the environment; they live on the AppConfiguration record and are
resolved per invocation by services.settings_resolver.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = Field(
        ...,
        description="PostgreSQL connection URL",
    )

    # Authentication
    JOB_API_KEY: str | None = Field(
        default=None,
        description="API key for scheduler-triggered job endpoints",
    )
    ADMIN_ROLE_KEYS: str = Field(
        default="system-admin,sysadmin",
        description="Comma-separated role keys that grant admin access",
    )

    # Application
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level",
    )
    LOG_JSON: bool = Field(
        default=True,
        description="Emit single-line JSON logs (False for human-readable local output)",
    )

    @field_validator("DATABASE_URL")
    @classmethod
    def fix_database_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but SQLAlchemy needs postgresql+psycopg2://"""
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+psycopg2://", 1)
        return v

    @property
    def admin_role_keys(self) -> frozenset[str]:
        return frozenset(key.strip() for key in self.ADMIN_ROLE_KEYS.split(",") if key.strip())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings. Call at startup to validate config."""
    return Settings()
