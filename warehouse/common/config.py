"""
Configuration Management

Loads environment variables and provides settings for the warehouse pipeline.
Uses python-dotenv for local development and environment variables for production.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from warehouse.common.exceptions import ConfigurationError

# Load .env file for local development
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///warehouse.db"


@dataclass(frozen=True)
class Settings:
    """
    Pipeline settings loaded from environment variables.

    Ensures no hardcoded connection strings in code.
    """

    database_url: str = DEFAULT_DATABASE_URL
    bronze_data_dir: str = "datasets"
    log_level: int = logging.INFO
    log_file: Optional[str] = None
    batch_size: int = 1000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        level_name = os.getenv("ETL_LOG_LEVEL", "INFO").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            raise ConfigurationError(
                f"Unknown log level: {level_name}",
                details={"ETL_LOG_LEVEL": level_name},
            )

        raw_batch_size = os.getenv("ETL_BATCH_SIZE", "1000")
        try:
            batch_size = int(raw_batch_size)
        except ValueError as e:
            raise ConfigurationError(
                "ETL_BATCH_SIZE must be an integer",
                details={"ETL_BATCH_SIZE": raw_batch_size},
                original_error=e,
            )
        if batch_size <= 0:
            raise ConfigurationError(
                "ETL_BATCH_SIZE must be positive",
                details={"ETL_BATCH_SIZE": batch_size},
            )

        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            bronze_data_dir=os.getenv("BRONZE_DATA_DIR", "datasets"),
            log_level=level,
            log_file=os.getenv("ETL_LOG_FILE") or None,
            batch_size=batch_size,
        )


def get_settings() -> Settings:
    """Return settings for the current environment."""
    return Settings.from_env()
