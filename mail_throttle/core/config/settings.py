"""Main settings and configuration management.

This module composes the settings of the different concerns (app, redis,
mail, throttle) into a single ``Settings`` class and exposes a process-wide
``get_settings()`` accessor.

Environment Support:
- Development: Uses .env
- Test: Uses .env.test when present
- Staging: Uses .env.staging when present
- Production: Uses .env.production when present
"""

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .mail import MailSettings, MailThrottleSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)


class Settings(AppSettings, RedisSettings, MailSettings, MailThrottleSettings):
    """The main settings class that aggregates all configurations.

    Usage:
        - Access the process-wide instance through ``get_settings()``.
        - Components accept an explicit ``settings`` argument, which is how
          tests inject isolated configurations.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )


ENV_FILES = {
    "development": ".env",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")
    env_file = ENV_FILES.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info(f"Loading environment configuration from {env_file}")
        return Settings(_env_file=env_file)
    if Path(".env").exists():
        logger.info(f"Loading environment configuration from .env (environment: {env})")
    else:
        logger.debug(f"No .env file found, using environment variables only (environment: {env})")
    return Settings()


@lru_cache
def get_settings() -> Settings:
    """Return the cached process-wide settings."""
    return create_settings()
