"""Configuration management via environment variables and pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

PROVIDERS_FILE_NAME = "ai-providers.json"


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    Priority (highest to lowest):
    1. CLI arguments (handled separately)
    2. Environment variables
    3. .env file
    4. Defaults defined here
    """

    # Storage
    data_dir: str = Field(
        default="./data",
        alias="GITTY_DATA_DIR",
        description="Directory holding the provider configuration document",
    )

    # Code hosting
    github_api_url: str = Field(
        default="https://api.github.com",
        alias="GITHUB_API_URL",
        description="GitHub REST API base URL",
    )

    github_token: str | None = Field(
        default=None, alias="GITHUB_TOKEN", description="GitHub access token"
    )

    github_timeout: float = Field(
        default=30.0, alias="GITHUB_TIMEOUT", description="GitHub request timeout in seconds"
    )

    # Repository creation
    write_batch_size: int = Field(
        default=5,
        ge=1,
        alias="GITTY_WRITE_BATCH_SIZE",
        description="Number of files written concurrently per batch",
    )

    max_retries: int = Field(
        default=3, ge=0, alias="GITTY_MAX_RETRIES", description="Retries per host/AI step"
    )

    retry_min_backoff: float = Field(
        default=1.0,
        ge=0,
        alias="GITTY_RETRY_MIN_BACKOFF",
        description="Initial backoff between retries in seconds",
    )

    retry_max_backoff: float = Field(
        default=30.0,
        ge=0,
        alias="GITTY_RETRY_MAX_BACKOFF",
        description="Upper bound for backoff between retries in seconds",
    )

    # Optional
    verbose: bool = Field(
        default=False, alias="GITTY_VERBOSE", description="Enable verbose output"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def providers_path(self) -> Path:
        """Get the provider configuration document path."""
        return Path(self.data_dir) / PROVIDERS_FILE_NAME


# Global settings instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
