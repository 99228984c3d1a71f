# booking/config.py
"""
Booking engine configuration.

Values come from the environment (prefix BOOKING_) or a local .env file.
"""
import logging.config
from typing import Optional
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings consumed by the booking engine."""

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_",
        env_file=".env",
        extra="ignore",
    )

    # ── Storage ──
    DATABASE_URL: str = "sqlite:///./booking.db"
    SQL_ECHO: bool = False  # set to True to see SQL

    # ── Booking rules ──
    REQUIRE_NOTES: bool = False
    EVENT_MINIMUM_DURATION: int = 5  # minutes
    HASH_LENGTH: int = 12

    # ── Logging ──
    LOG_LEVEL: str = "INFO"

    @property
    def LOGGING_CONFIG(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "booking": {
                    "handlers": ["console"],
                    "level": self.LOG_LEVEL,
                    "propagate": False,
                },
            },
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply the logging configuration for the booking loggers."""
    settings = settings or get_settings()
    logging.config.dictConfig(settings.LOGGING_CONFIG)
