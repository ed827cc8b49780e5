"""
Mail Throttling Domain Services

ThrottleDecisionEngine turns one atomic acquire against the shared counter
store into an ALLOW or DENY decision. It never waits for a slot, never
retries, and never turns a store failure into a decision: failures surface
as ``StoreUnavailableError`` so the caller can apply its fail-open policy.
"""

from __future__ import annotations

import structlog

from mail_throttle.core.exceptions import StoreUnavailableError

from .repositories import ThrottleStore
from .value_objects import ThrottleDecision, ThrottleKey

logger = structlog.get_logger(__name__)


class ThrottleDecisionEngine:
    """Zero-wait ALLOW/DENY decisions backed by a ``ThrottleStore``."""

    def __init__(self, store: ThrottleStore):
        self.store = store

    async def decide(self, key: ThrottleKey, rate: int, window_seconds: int) -> ThrottleDecision:
        """
        Count this attempt against ``key`` and decide.

        Args:
            key: Bucket of the throttled mailer.
            rate: Attempts allowed per window, at least 1.
            window_seconds: Window length, at least 1.

        Returns:
            ThrottleDecision.ALLOW if the attempt fits in the window,
            ThrottleDecision.DENY otherwise.

        Raises:
            ValueError: On a rate or window below 1.
            StoreUnavailableError: When the store cannot answer.
        """
        if rate is None or rate < 1:
            raise ValueError(f"rate must be >= 1, got {rate!r}")
        if window_seconds is None or window_seconds < 1:
            raise ValueError(f"window_seconds must be >= 1, got {window_seconds!r}")
        if not isinstance(key, ThrottleKey):
            key = ThrottleKey(str(key))

        try:
            result = await self.store.try_acquire(key, rate, window_seconds)
        except StoreUnavailableError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(
                f"Throttle store failed: {exc}", key=key.value
            ) from exc

        decision = ThrottleDecision.ALLOW if result.allowed else ThrottleDecision.DENY
        logger.debug(
            "Mail throttle decision",
            key=key.value,
            decision=decision.value,
            count=result.count,
            limit=rate,
            window_seconds=window_seconds,
        )
        return decision
