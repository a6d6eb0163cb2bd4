"""Application configuration settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..consts import MAX_BATCH_SIZE_BYTES


class DatabaseSettings(BaseSettings):
    """Database configuration."""

    url: str = Field(default="sqlite:///./data/synchronizer.db")

    model_config = SettingsConfigDict(env_prefix="DB_")


class SyncSettings(BaseSettings):
    """Sync queue processing configuration."""

    queue_name: str = Field(default="default")
    max_batch_size_bytes: int = Field(default=MAX_BATCH_SIZE_BYTES, gt=0)
    continuation_delay_seconds: float = Field(default=5.0, ge=0)
    max_passes: int = Field(default=1000, gt=0)
    queue_file: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="SYNC_")


class TransferSettings(BaseSettings):
    """Destination transfer client configuration."""

    client: str = Field(default="http")
    base_url: str = Field(default="http://localhost:8080/api")
    api_token: str = Field(default="")
    timeout_seconds: float = Field(default=300.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="TRANSFER_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file_path: Optional[str] = Field(default="./logs/synchronizer.log")

    model_config = SettingsConfigDict(env_prefix="LOG_")


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="File Synchronizer")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    transfer: TransferSettings = Field(default_factory=TransferSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get application settings."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Re-read settings from the environment."""
    global _settings
    _settings = AppSettings()
    return _settings
