"""
Application Configuration Module

This module defines all configuration settings for the NullTasker API.
Settings are loaded from environment variables (via .env file) using Pydantic.
"""
import logging
import secrets
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application-wide configuration settings.

    All settings can be overridden via environment variables.
    The .env file is automatically loaded if present.
    """
    # === Application Metadata ===
    PROJECT_NAME: str = "NullTasker API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"  # API version prefix for all routes
    ENV: str = "development"  # "development" or "production"
    LOG_LEVEL: str = "INFO"

    # === Storage Configuration ===
    # "sqlite": tickets/projects in SQLite, users/settings as JSON documents
    # "json":   every collection as a JSON document
    STORAGE_BACKEND: str = "sqlite"
    DATA_DIR: str = "./data"
    DATABASE_URL: Optional[str] = None  # defaults to <DATA_DIR>/nulltasker.db
    BACKUP_DIR: Optional[str] = None  # defaults to <DATA_DIR>/backups
    DEFAULT_PROJECT_ID: str = "default"

    # === Security Configuration ===
    # Required in production. In development a random secret is generated at
    # startup, so issued tokens do not survive a restart.
    SECRET_KEY: Optional[str] = None
    ALGORITHM: str = "HS256"  # JWT encoding algorithm
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REMEMBER_ME_REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 10

    # === CORS ===
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"

    # Pydantic configuration
    model_config = SettingsConfigDict(
        env_file=".env",        # Load environment variables from .env file
        case_sensitive=True,    # Environment variable names must match case
        extra="ignore"          # Ignore extra environment variables not defined here
    )

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        """Get CORS origins as list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def data_path(self) -> Path:
        return Path(self.DATA_DIR)

    @property
    def backup_path(self) -> Path:
        if self.BACKUP_DIR:
            return Path(self.BACKUP_DIR)
        return self.data_path / "backups"

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or f"sqlite:///{self.data_path / 'nulltasker.db'}"


def resolve_secret_key(config: Settings) -> str:
    """
    Return the JWT signing secret for this process.

    Production refuses to start without SECRET_KEY; elsewhere a random secret
    is generated once per process.
    """
    if config.SECRET_KEY:
        return config.SECRET_KEY
    if config.is_production:
        raise RuntimeError("SECRET_KEY must be set in production.")
    logger.warning(
        "SECRET_KEY is not set; generated a random secret. "
        "Issued tokens will be invalid after a restart."
    )
    return secrets.token_hex(64)


# Create a single global settings instance
# create_app() accepts an explicit Settings for tests and scripts
settings = Settings()
