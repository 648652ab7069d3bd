"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: PostgresDsn | None = Field(
        default=None,
        description="PostgreSQL connection string with asyncpg driver (in-memory store if unset)"
    )

    # Export
    export_path: Path = Field(
        default=Path("./exports"),
        description="Directory where exported PDF files are written"
    )

    # Billing policy
    snapshot_tax_rate: bool = Field(
        default=False,
        description="Freeze the business tax rate onto documents when they are created"
    )
    numbering_max_attempts: int = Field(
        default=50,
        ge=1,
        description="Redraws allowed when a generated document number collides"
    )

    # Text suggestions (OpenAI-compatible chat completions endpoint)
    suggestion_api_base: str | None = Field(
        default=None,
        description="Base URL of the suggestion service (suggestions disabled if unset)"
    )
    suggestion_api_key: str | None = Field(
        default=None,
        description="Bearer token for the suggestion service"
    )
    suggestion_model: str = Field(
        default="gpt-4o-mini",
        description="Model name sent to the suggestion service"
    )
    suggestion_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Request timeout for suggestion calls"
    )

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )

    @property
    def suggestions_enabled(self) -> bool:
        """True when a suggestion endpoint is configured."""
        return bool(self.suggestion_api_base)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
