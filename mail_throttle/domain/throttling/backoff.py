"""
Release delay calculation for throttled mail jobs.

A denied job is handed back to the queue with a delay. The delay grows
exponentially with the job's attempt count so that a persistently saturated
mailer sheds load, and it carries additive random jitter so that the many
workers denied in the same window do not all come back at the same instant.

    base       = max(1, ceil(window / rate))      time for one slot to free up
    multiplier = min(max_multiplier, 2 ** (attempt - 1))
    delay      = min(base * multiplier, max_delay)
    delay     += round(delay * jitter_percent * f)   with f uniform in [0, 1]
    result     = max(1, delay)

Example (rate=2, window=1, max_multiplier=8, max_delay=30), before jitter:
attempt 1 -> 1s, 2 -> 2s, 3 -> 4s, 4 -> 8s, 5 -> 8s.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from .value_objects import AttemptContext

if TYPE_CHECKING:
    from mail_throttle.core.config.mail import MailThrottleSettings

DEFAULT_MAX_MULTIPLIER = 8
DEFAULT_MAX_DELAY = 30
DEFAULT_JITTER_PERCENT = 0.5

# 2 ** 62 is far beyond any sane multiplier cap
_MAX_EXPONENT = 62

RandomSource = Callable[[], float]


def _system_fraction() -> float:
    # OS entropy per draw, so forked workers never share a sequence
    return random.SystemRandom().uniform(0.0, 1.0)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def base_delay(rate: int, window_seconds: int) -> int:
    """Seconds for one slot to free up, never below one."""
    rate = max(1, rate)
    window_seconds = max(1, window_seconds)
    return max(1, math.ceil(window_seconds / rate))


def backoff_multiplier(attempt: int, max_multiplier: int = DEFAULT_MAX_MULTIPLIER) -> int:
    """``min(max_multiplier, 2 ** (attempt - 1))`` with attempt read as >= 1."""
    attempt = max(1, attempt)
    max_multiplier = max(1, max_multiplier)
    return min(max_multiplier, 2 ** min(attempt - 1, _MAX_EXPONENT))


def pre_jitter_delay(
    attempt: int,
    rate: int,
    window_seconds: int,
    max_multiplier: int = DEFAULT_MAX_MULTIPLIER,
    max_delay: int = DEFAULT_MAX_DELAY,
) -> int:
    """Backed-off and capped delay, before jitter."""
    delay = base_delay(rate, window_seconds) * backoff_multiplier(attempt, max_multiplier)
    return max(1, min(delay, max(1, max_delay)))


def compute_release_delay(
    attempt: int,
    rate: int,
    window_seconds: int,
    max_multiplier: int = DEFAULT_MAX_MULTIPLIER,
    max_delay: int = DEFAULT_MAX_DELAY,
    jitter_percent: float = DEFAULT_JITTER_PERCENT,
    rng: Optional[RandomSource] = None,
) -> int:
    """
    Compute how long a denied job should wait before its next attempt.

    Never raises: out-of-range inputs are clamped. The result lies in
    ``[1, max_delay + round(max_delay * jitter_percent)]``.

    Args:
        attempt: 1-indexed attempt count of the job (<= 0 is read as 1).
        rate: Allowed sends per window.
        window_seconds: Window length in seconds.
        max_multiplier: Cap of the exponential factor.
        max_delay: Cap of the delay before jitter.
        jitter_percent: Upper bound of additive jitter, clamped into [0, 1].
        rng: Zero-argument callable returning a fraction in [0, 1]. Defaults
            to a fresh OS-entropy draw per call.

    Returns:
        Release delay in whole seconds.
    """
    delay = pre_jitter_delay(attempt, rate, window_seconds, max_multiplier, max_delay)

    jitter_percent = min(1.0, max(0.0, jitter_percent))
    if jitter_percent > 0:
        fraction = min(1.0, max(0.0, (rng or _system_fraction)()))
        delay += _round_half_up(delay * jitter_percent * fraction)

    return max(1, delay)


@dataclass(frozen=True)
class BackoffPolicy:
    """Package-level backoff settings bound to a random source."""
    max_multiplier: int = DEFAULT_MAX_MULTIPLIER
    max_delay: int = DEFAULT_MAX_DELAY
    jitter_percent: float = DEFAULT_JITTER_PERCENT
    rng: Optional[RandomSource] = None

    @classmethod
    def from_settings(cls, settings: MailThrottleSettings, rng: Optional[RandomSource] = None) -> BackoffPolicy:
        return cls(
            max_multiplier=settings.MAIL_THROTTLE_MAX_BACKOFF_MULTIPLIER,
            max_delay=settings.MAIL_THROTTLE_MAX_RELEASE_DELAY,
            jitter_percent=settings.MAIL_THROTTLE_JITTER_PERCENT,
            rng=rng,
        )

    @property
    def upper_bound(self) -> int:
        """Largest delay this policy can return."""
        cap = max(1, self.max_delay)
        jitter = min(1.0, max(0.0, self.jitter_percent))
        return cap + _round_half_up(cap * jitter)

    def pre_jitter_delay(self, context: AttemptContext) -> int:
        return pre_jitter_delay(
            context.attempt,
            context.rate,
            context.window_seconds,
            self.max_multiplier,
            self.max_delay,
        )

    def release_delay(self, context: AttemptContext) -> int:
        return compute_release_delay(
            context.attempt,
            context.rate,
            context.window_seconds,
            max_multiplier=self.max_multiplier,
            max_delay=self.max_delay,
            jitter_percent=self.jitter_percent,
            rng=self.rng,
        )
