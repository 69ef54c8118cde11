"""
Application configuration management with environment variables.

This module provides centralized configuration management using Pydantic
BaseSettings for type-safe environment variable handling with validation
and default values. Settings are read once at startup and passed explicitly
to the components that need them.
"""

from functools import lru_cache
from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when startup configuration cannot be applied."""


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    All settings can be overridden via environment variables with the
    APP_ prefix (e.g., APP_JSON_TIME_ZONE, APP_LOG_LEVEL).
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application Configuration
    app_name: str = Field(
        default="Waiter Service",
        description="Application name",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )

    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application logging level",
    )

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins",
    )

    # JSON Rendering Configuration
    json_time_zone: str = Field(
        default="Asia/Taipei",
        description="IANA time zone every rendered timestamp is converted to",
    )

    json_indent_output: bool = Field(
        default=True,
        description="Indent JSON response bodies",
    )

    json_expose_ids: bool = Field(
        default=True,
        description="Render entity primary keys and placeholder identifiers",
    )

    @field_validator("json_time_zone")
    @classmethod
    def validate_json_time_zone(cls, v: str) -> str:
        """
        Validate that the time zone identifier names a known IANA zone.

        Args:
            v: Time zone identifier

        Returns:
            Validated time zone identifier

        Raises:
            ValueError: If the zone is unknown
        """
        v = v.strip()
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError, OSError) as e:
            raise ValueError(f"Unknown time zone identifier: {v!r}") from e
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v) -> list[str]:
        """
        Parse CORS origins from string or list.

        Args:
            v: CORS origins value (string or list)

        Returns:
            List of CORS origin URLs
        """
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Settings are loaded once per process and are read-only afterwards.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
