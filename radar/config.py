import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Configuration for the datastore Radar talks to."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="RADAR_DB_", extra="ignore"
    )

    connection_string: Optional[str] = Field(
        None, description="Connection string handed to the driver, e.g. sqlite:///radar.db"
    )
    dialect: str = Field("sqlite", description="SQLAlchemy dialect used to compile queries")
    connect_timeout: float = Field(30.0, description="Seconds to wait on a locked database")


class AppSettings(BaseSettings):
    """General settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="RADAR_", extra="ignore"
    )

    debug: bool = Field(False, description="Enable debug mode for development")
    log_level: str = Field("INFO", description="Logging level")

    db: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @property
    def log_level_value(self) -> int:
        """Return the numeric value of the log level."""
        return logging.getLevelName(self.log_level.upper())


@lru_cache
def get_settings() -> AppSettings:
    """
    Get Radar settings.
    If the TEST_MODE environment variable is set, it returns an in-memory SQLite
    configuration suitable for testing, otherwise loads the .env file.
    """
    if os.getenv("TEST_MODE"):
        return AppSettings(
            debug=True,
            log_level="DEBUG",
            db=DatabaseSettings(connection_string="sqlite:///:memory:", dialect="sqlite"),
        )
    return AppSettings()
