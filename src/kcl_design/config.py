"""Configuration management for kcl-design."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging_utils import LogProfile, configure_logging


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="KCL_DESIGN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # Model Configuration
    model: str | None = Field(None, description="Default model in provider:model format")
    api_key: str | None = Field(None, description="API key for the LLM provider", repr=False)
    api_base: str | None = Field(None, description="Optional API base URL")
    max_tokens: int = Field(default=16384, description="Default maximum tokens for one generation")

    # Engine Configuration
    max_retries: int = Field(default=2, ge=0, description="Validation retries after the first attempt")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: LogProfile = Field(default="default", description="Log profile")


def get_settings() -> Settings:
    """Get application settings and configure logging.

    Returns:
        Settings instance
    """
    settings = Settings()
    configure_logging(profile=settings.log_profile, level=settings.log_level)
    return settings
