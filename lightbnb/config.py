import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Configuration for the database."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="DATABASE_", extra="ignore"
    )

    path: str = Field("lightbnb.db", description="Path to the SQLite database file")
    pool_size: int = Field(5, ge=1, description="Number of pooled connections")
    pool_timeout: float = Field(30.0, gt=0, description="Seconds to wait for a free connection")
    schema_file: Optional[str] = Field(
        None, description="SQL file applied instead of the built-in schema on first start"
    )


class AppSettings(BaseSettings):
    """General application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    debug: bool = Field(False, description="Enable debug mode for development")
    log_level: str = Field("INFO", description="Logging level")
    search_limit: int = Field(10, ge=1, description="Default number of properties per search")
    reservation_limit: int = Field(20, ge=1, description="Default number of reservations listed")

    db: DatabaseSettings = DatabaseSettings()

    @property
    def log_level_value(self) -> int:
        """Return the numeric value of the log level."""
        return logging.getLevelName(self.log_level.upper())


@lru_cache
def get_settings() -> AppSettings:
    """
    Get application settings.
    If the TEST_MODE environment variable is set, it returns a configuration
    backed by an in-memory database, otherwise loads the configuration from the .env file.
    """
    if os.getenv("TEST_MODE"):
        return AppSettings(
            debug=True,
            log_level="DEBUG",
            db=DatabaseSettings(path=":memory:", pool_size=1),
        )
    return AppSettings()
