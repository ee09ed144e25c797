"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
When it is unset (or empty), only the process environment is read.
"""

import os
from enum import Enum

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pymongo import WriteConcern

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


def parse_write_concern(value: str) -> WriteConcern:
    """
    Build a pymongo WriteConcern from a settings value.

    Accepts "majority" or a non-negative integer string ("0", "1", "2", ...).

    Raises:
        ValueError: If the value is neither
    """
    value = value.strip().lower()
    if value == "majority":
        return WriteConcern(w="majority")
    if value.isdigit():
        return WriteConcern(w=int(value))
    raise ValueError(f"write concern must be 'majority' or an integer, got '{value}'")


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for an explicit env file in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "mflix-data-access"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True

    # MongoDB
    mongodb_uri: str
    mongodb_database: str = "sample_mflix"
    mongodb_users_collection: str = "users"
    mongodb_sessions_collection: str = "sessions"

    # Account writes must survive a primary failover, sessions are cheap to re-mint
    mongodb_users_write_concern: str = "majority"
    mongodb_sessions_write_concern: str = "1"

    mongodb_server_selection_timeout_ms: int = 5000

    # Create the unique indexes when the app starts (scripts/setup_database.py does it otherwise)
    mongodb_create_indexes_on_startup: bool = False

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # Health check token for protecting /health and /readyz endpoints (optional)
    health_token: str | None = None

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("app_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"app_log_level must be one of {list(_LOG_LEVELS)}, got '{v}'")
        return level

    @field_validator("mongodb_users_write_concern", "mongodb_sessions_write_concern")
    @classmethod
    def validate_write_concern(cls, v: str) -> str:
        """Reject write concern values pymongo would not accept."""
        parse_write_concern(v)
        return v.strip().lower()

    @field_validator("mongodb_server_selection_timeout_ms")
    @classmethod
    def validate_server_selection_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("mongodb_server_selection_timeout_ms must be positive")
        return v

    @property
    def users_write_concern(self) -> WriteConcern:
        return parse_write_concern(self.mongodb_users_write_concern)

    @property
    def sessions_write_concern(self) -> WriteConcern:
        return parse_write_concern(self.mongodb_sessions_write_concern)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validate production-specific settings.

        These checks prevent insecure configurations from being deployed to production.
        """
        if not self.mongodb_uri.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGODB_URI must use the mongodb:// or mongodb+srv:// scheme")

        if self.app_env == AppEnvironment.PROD:
            # Atlas SRV URIs imply TLS; plain URIs must ask for it
            uri = self.mongodb_uri.lower()
            if not uri.startswith("mongodb+srv://") and "tls=true" not in uri:
                raise ValueError(
                    "MONGODB_URI must use mongodb+srv:// or set tls=true in production"
                )

            if self.mongodb_users_write_concern != "majority":
                raise ValueError("MONGODB_USERS_WRITE_CONCERN must be 'majority' in production")

        return self


settings = Settings()
