"""Configuration management for Questrade MCP Server."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import DEFAULT_API_URL, DEFAULT_LOGIN_URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Fallback credentials, used when no token file is present
    questrade_refresh_token: Optional[str] = None
    questrade_access_token: Optional[str] = None
    questrade_api_url: Optional[str] = None

    # Token storage directory (defaults to ~/.questrade-mcp)
    questrade_token_dir: Optional[Path] = None

    # Endpoints
    questrade_login_url: str = DEFAULT_LOGIN_URL
    questrade_default_api_url: str = DEFAULT_API_URL

    # Optional settings
    log_level: str = "INFO"
    questrade_timeout: int = 30


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
