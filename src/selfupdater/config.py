"""Configuration management for selfupdater."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from selfupdater.constants import (
    DEFAULT_SELF_UPDATE_TIMEOUT,
    PARTITION_MAX,
    PARTITION_MIN,
)


class Settings(BaseSettings):
    """Updater settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SELFUPDATER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Identity of the tool being updated
    binary_name: str = Field(min_length=1, description="Name of the tool binary")
    current_version: str = Field(min_length=1, description="Version string of the running build")

    # Endpoints
    latest_version_url: str = Field(description="URL (or path) of the latest-version metadata")
    self_update_root_url: str = Field(description="Root URL the release binaries are served from")

    # Behaviour
    self_update_enabled: bool = Field(default=True, description="Check for updates at all")
    self_update_timeout: float = Field(
        default=DEFAULT_SELF_UPDATE_TIMEOUT,
        gt=0,
        description="Seconds to wait for the version check",
    )
    partition: int = Field(
        default=PARTITION_MIN,
        ge=PARTITION_MIN,
        le=PARTITION_MAX,
        description="Rollout partition of this machine/user",
    )

    target_path: str | None = Field(
        default=None, description="Executable to replace; defaults to the running one"
    )

    # Debug flags
    force_self_update: bool = Field(
        default=False, description="Offer the update regardless of version and partition"
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
