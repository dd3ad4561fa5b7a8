"""
Configuration management for SonoReport.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "SonoReport"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    # ==========================================================================
    # Drafting model
    # ==========================================================================
    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    openai_base_url: Optional[str] = None
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 60.0

    # ==========================================================================
    # Drafting limits
    # ==========================================================================
    max_images: int = 12

    # ==========================================================================
    # National ID protection
    # ==========================================================================
    rrn_encryption_secret: str = ""

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_per_minute: int = 30
    rate_limit_per_hour: int = 200

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def llm_configured(self) -> bool:
        """Whether an API key for the drafting model is present."""
        return bool(self.openai_api_key.strip())


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
