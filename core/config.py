"""
Application configuration management.

Uses pydantic-settings for type-safe environment variable parsing.
All configuration is centralized here to support dependency injection
and avoid scattering os.getenv() calls throughout the codebase.
"""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation and type coercion.

    Values are loaded from environment variables or .env file.
    All fields have sensible defaults for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Driver selection
    # DRIVERS is a JSON object: {"name": {"kind": "smtp", "host": ..., ...}}
    default_driver: str = "memory"
    drivers: dict[str, dict[str, Any]] = Field(
        default_factory=lambda: {"memory": {"kind": "memory"}}
    )

    # Upper bound for a single driver execute() call, 0 disables it
    execute_timeout_seconds: float = 30.0

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8000
    debug: bool = True

    # Environment
    environment: Literal["development", "staging", "production"] = "development"

    @field_validator("drivers")
    @classmethod
    def _each_driver_has_kind(cls, value: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any]]:
        for name, options in value.items():
            if not isinstance(options, dict) or "kind" not in options:
                raise ValueError(f"Driver '{name}' must be an object with a 'kind' key")
        return value

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def timeout(self) -> float | None:
        """Execute timeout in seconds, or None when disabled."""
        return self.execute_timeout_seconds or None


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings singleton.

    Use this function to get settings instance throughout the application.
    The @lru_cache ensures we only parse environment once.
    """
    return Settings()


# Convenience export for direct import
settings = get_settings()
