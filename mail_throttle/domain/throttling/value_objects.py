"""
Mail Throttling Value Objects

Immutable value objects for the mail throttling domain.

Value Objects:
- ThrottleTarget: A mailer together with its effective rate and window
- ThrottleKey: The shared counter bucket identifier for one target
- ThrottleDecision: ALLOW or DENY for one attempt
- AcquireResult: The counter store's answer to one acquire attempt
- AttemptContext: Input of the release delay calculation

Design Principles:
- Immutability: All value objects are frozen after creation
- Validation: Invariants enforced at construction time
- Determinism: Equal configuration always yields equal keys
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mail_throttle.core.config.mail import MailerConfig


KEY_NAMESPACE = "mail-throttle"
FALLBACK_PREFIX = "mail-throttle"


class ThrottleDecision(Enum):
    """Outcome of a single check against the counter store."""
    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is ThrottleDecision.ALLOW


@dataclass(frozen=True, slots=True)
class ThrottleTarget:
    """
    A named mailer and the rate it may send at.

    Business Rules:
    - Throttling is active only when both ``rate`` and ``window_seconds``
      are positive
    - Anything else (no rate, zero or negative rate, non-positive window)
      makes the target pass-through rather than an error
    """
    name: str
    rate: Optional[int] = None
    window_seconds: int = 1

    @property
    def is_throttled(self) -> bool:
        return (
            self.rate is not None
            and self.rate >= 1
            and self.window_seconds is not None
            and self.window_seconds >= 1
        )

    @classmethod
    def from_config(
        cls,
        name: str,
        config: Optional[MailerConfig],
        rate_override: Optional[int] = None,
        per_override: Optional[int] = None,
    ) -> ThrottleTarget:
        """
        Build a target from mailer configuration.

        Overrides only take effect for a mailer that has opted in with a
        ``rate_limit``; an unconfigured mailer stays pass-through.
        """
        if config is None or config.rate_limit is None:
            return cls(name=name)

        rate = rate_override if rate_override is not None else config.rate_limit
        if per_override is not None:
            window = per_override
        elif config.rate_limit_per is not None:
            window = config.rate_limit_per
        else:
            window = 1
        return cls(name=name, rate=int(rate), window_seconds=int(window))


def _non_empty(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


@dataclass(frozen=True, slots=True)
class ThrottleKey:
    """
    Identifier of the shared counter bucket for one target.

    Format: ``{prefix}:mail-throttle:{target}``. The target name is not
    escaped; mailer names must not contain characters that are meaningful in
    the store's key namespace.
    """
    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValueError("Throttle key must be a non-empty string")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def build(
        cls,
        target_name: str,
        configured_prefix: Optional[str] = None,
        shared_cache_prefix: Optional[str] = None,
        app_name: Optional[str] = None,
    ) -> ThrottleKey:
        """
        Resolve the prefix and compose the key.

        Prefix priority: explicit configuration, shared cache prefix,
        application name, then a fixed fallback.
        """
        for candidate in (configured_prefix, shared_cache_prefix, app_name):
            if _non_empty(candidate):
                prefix = candidate
                break
        else:
            prefix = FALLBACK_PREFIX
        return cls(f"{prefix}:{KEY_NAMESPACE}:{target_name}")


def build_throttle_key(
    target_name: str,
    configured_prefix: Optional[str] = None,
    shared_cache_prefix: Optional[str] = None,
    app_name: Optional[str] = None,
) -> ThrottleKey:
    """Functional alias of ``ThrottleKey.build``."""
    return ThrottleKey.build(target_name, configured_prefix, shared_cache_prefix, app_name)


@dataclass(frozen=True, slots=True)
class AcquireResult:
    """
    Answer of the counter store for one acquire attempt.

    Attributes:
        allowed: Whether a slot was granted.
        count: Hits recorded in the current window, this attempt included.
        limit: The limit the attempt was checked against.
        reset_after: Seconds until the window expires, -1 when unknown.
    """
    allowed: bool
    count: int = 0
    limit: int = 0
    reset_after: int = -1

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


@dataclass(frozen=True, slots=True)
class AttemptContext:
    """
    Per-attempt input of the release delay calculation.

    The attempt counter belongs to the queue; it is only read here. Values
    below 1 are normalised to 1.
    """
    attempt: int
    rate: int
    window_seconds: int

    def __post_init__(self):
        if self.attempt is None or self.attempt < 1:
            object.__setattr__(self, "attempt", 1)
