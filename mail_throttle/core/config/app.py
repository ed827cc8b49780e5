"""
Application-specific settings.
"""
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """
    Defines application-wide settings like project name, environment and logging.

    Note:
        - PROJECT_NAME doubles as the last-but-one link of the throttle key
          prefix chain, so two deployments sharing one Redis must not share
          a name unless they also set MAIL_THROTTLE_KEY_PREFIX or CACHE_PREFIX.
    """
    PROJECT_NAME: str = "mail-throttle"
    VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = True

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """
        Upper-cases the log level so `info` and `INFO` are equivalent.

        Args:
            v: Raw log level value.

        Returns:
            Upper-cased level name.
        """
        if isinstance(v, str):
            return v.strip().upper()
        return v
