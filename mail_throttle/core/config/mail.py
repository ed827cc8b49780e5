"""Mail transport and throttling settings.

Two groups live here:

* ``MailSettings`` describes the mailers (transports) known to the
  application. A mailer opts into throttling by carrying a ``rate_limit``;
  mailers without one are never throttled.
* ``MailThrottleSettings`` holds the package-level knobs of the throttle
  itself: backoff shape, fail-open policy, key prefix and circuit breaker.

Example ``.env``::

    MAIL_DEFAULT_MAILER=resend
    MAIL_MAILERS={"resend": {"transport": "resend", "rate_limit": 2, "rate_limit_per": 1}}
    MAIL_THROTTLE_FAIL_OPEN=true
"""

import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class MailerConfig(BaseModel):
    """Configuration of a single mailer.

    ``rate_limit`` and ``rate_limit_per`` are intentionally not range
    validated: a mailer with a non-positive rate or window is treated as
    unthrottled instead of failing the whole settings load.
    """

    model_config = ConfigDict(extra="allow")

    transport: Optional[str] = None
    rate_limit: Optional[int] = None
    rate_limit_per: Optional[int] = 1


class MailSettings(BaseSettings):
    """Mailer definitions.

    Attributes:
        MAIL_DEFAULT_MAILER: Mailer used when a job does not name one.
        MAIL_MAILERS: Mapping of mailer name to its ``MailerConfig``; accepts
            a JSON string when loaded from the environment.
    """

    MAIL_DEFAULT_MAILER: Optional[str] = Field(
        default="smtp",
        description="Mailer used when a job does not specify one"
    )
    MAIL_MAILERS: Dict[str, MailerConfig] = Field(
        default_factory=dict,
        description="Mailer name to mailer configuration"
    )

    @field_validator("MAIL_MAILERS", mode="before")
    @classmethod
    def parse_mailers(cls, v: Any) -> Any:
        """Accept a JSON document as well as a mapping."""
        if v is None or v == "":
            return {}
        if isinstance(v, (str, bytes)):
            return json.loads(v)
        return v

    def mailer_config(self, name: str) -> Optional[MailerConfig]:
        """Return the configuration of ``name`` or None if it is unknown."""
        return self.MAIL_MAILERS.get(name)


class MailThrottleSettings(BaseSettings):
    """Package-level throttle settings.

    Attributes:
        MAIL_THROTTLE_MAX_RELEASE_DELAY: Cap, in seconds, applied to the
            release delay before jitter is added.
        MAIL_THROTTLE_MAX_BACKOFF_MULTIPLIER: Cap of the exponential factor.
        MAIL_THROTTLE_JITTER_PERCENT: Upper bound of the additive jitter as a
            fraction of the capped delay.
        MAIL_THROTTLE_FAIL_OPEN: Send unthrottled when the store is down
            (True) or fail the job (False).
        MAIL_THROTTLE_KEY_PREFIX: Explicit key prefix; falls back to
            CACHE_PREFIX, then PROJECT_NAME.
        MAIL_THROTTLE_BREAKER_ENABLED: Guard store calls with a circuit breaker.
        MAIL_THROTTLE_BREAKER_FAILURE_THRESHOLD: Consecutive store failures
            that open the breaker.
        MAIL_THROTTLE_BREAKER_RESET_TIMEOUT: Seconds the breaker stays open.
    """

    MAIL_THROTTLE_MAX_RELEASE_DELAY: int = Field(default=30, ge=1)
    MAIL_THROTTLE_MAX_BACKOFF_MULTIPLIER: int = Field(default=8, ge=1)
    MAIL_THROTTLE_JITTER_PERCENT: float = Field(default=0.5, ge=0.0, le=1.0)
    MAIL_THROTTLE_FAIL_OPEN: bool = True
    MAIL_THROTTLE_KEY_PREFIX: Optional[str] = None

    MAIL_THROTTLE_BREAKER_ENABLED: bool = True
    MAIL_THROTTLE_BREAKER_FAILURE_THRESHOLD: int = Field(default=5, ge=1)
    MAIL_THROTTLE_BREAKER_RESET_TIMEOUT: int = Field(default=30, ge=1)
