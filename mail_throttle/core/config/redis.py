"""
Redis settings for the shared counter store.
"""
from typing import Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings
import logging

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis connection backing the throttle counters.

    Security Note:
        - REDIS_PASSWORD should be set whenever Redis is reachable from more
          than the worker hosts.
        - Use REDIS_SSL (rediss://) when workers and Redis talk over an
          untrusted network.
    Performance Note:
        - REDIS_SOCKET_TIMEOUT bounds how long a throttle check may hold a
          worker when Redis is degraded; once it expires the check surfaces
          as a store failure and the fail-open policy applies.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_DB: int = Field(ge=0, default=0)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_SOCKET_TIMEOUT: float = Field(default=1.0, gt=0)
    REDIS_URL: str = Field(default="", validate_default=True)

    # Prefix shared with the application's cache layer, if any
    CACHE_PREFIX: Optional[str] = None

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: Optional[str], info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        secret = values.get("REDIS_PASSWORD")
        redis_password = secret.get_secret_value() if secret else ""
        password = f":{redis_password}@" if redis_password else ""

        url = (
            f"{protocol}://{password}{values.get('REDIS_HOST')}:"
            f"{values.get('REDIS_PORT')}/{values.get('REDIS_DB', 0)}"
        )
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url
