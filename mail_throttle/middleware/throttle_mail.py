"""Queue middleware that throttles outgoing mail per mailer.

``ThrottleMail`` wraps the "send" step of a queued mail job:

1. Notifications fanning out to several channels only throttle ``mail``.
2. The mailer is resolved from the gate, the job, a wrapped mailable or
   notification, or the default mailer, in that order.
3. A mailer without a usable ``rate_limit`` is never throttled.
4. Otherwise one zero-wait check against the shared counter decides:
   ALLOW runs the job now, DENY hands it back to the queue with a
   jittered, backed-off delay.
5. If the counter store is down, ``MAIL_THROTTLE_FAIL_OPEN`` decides
   between sending unthrottled (logged) and failing the job.

Example::

    gate = ThrottleMail()
    await gate.handle(job, send_now)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import structlog

from mail_throttle.core.config.settings import Settings, get_settings
from mail_throttle.core.exceptions import StoreUnavailableError
from mail_throttle.domain.interfaces.queue import JobScheduler
from mail_throttle.domain.throttling.backoff import BackoffPolicy
from mail_throttle.domain.throttling.repositories import ThrottleStore
from mail_throttle.domain.throttling.resolvers import MailerResolver
from mail_throttle.domain.throttling.services import ThrottleDecisionEngine
from mail_throttle.domain.throttling.value_objects import (
    AttemptContext,
    ThrottleKey,
    ThrottleTarget,
)
from mail_throttle.infrastructure.queue import ReleasingJobScheduler
from mail_throttle.infrastructure.throttle_store import RedisThrottleStore
from mail_throttle.utils.awaitables import invoke, maybe_await

logger = structlog.get_logger(__name__)

MAIL_CHANNEL = "mail"

Continuation = Callable[[Any], Union[Any, Awaitable[Any]]]

_default_store: Optional[ThrottleStore] = None
_stores_by_url: Dict[str, ThrottleStore] = {}


def set_default_store(store: Optional[ThrottleStore]) -> None:
    """Force every gate without an explicit store onto ``store``.

    ``None`` drops the override together with the per-URL stores.
    """
    global _default_store
    _default_store = store
    if store is None:
        _stores_by_url.clear()


def get_default_store(settings: Optional[Settings] = None) -> ThrottleStore:
    """Return the shared store for the Redis behind ``settings``.

    One ``RedisThrottleStore`` (connection pool and breaker) is kept per
    ``REDIS_URL``. Gates on the same URL share it, including its breaker,
    which is built from the settings of the first gate that asked.
    """
    if _default_store is not None:
        return _default_store
    settings = settings or get_settings()
    store = _stores_by_url.get(settings.REDIS_URL)
    if store is None:
        store = RedisThrottleStore.from_settings(settings)
        _stores_by_url[settings.REDIS_URL] = store
    return store


class GateOutcome(str, Enum):
    """Terminal state of one pass through the gate."""
    CONTINUE = "continue"
    DEFER = "defer"


class ThrottleMail:
    """Rate limiting gate for queued mail jobs."""

    def __init__(
        self,
        store: Optional[ThrottleStore] = None,
        *,
        max_attempts: Optional[int] = None,
        per_seconds: Optional[int] = None,
        mailer: Optional[str] = None,
        settings: Optional[Settings] = None,
        scheduler: Optional[JobScheduler] = None,
        backoff: Optional[BackoffPolicy] = None,
    ):
        """
        Args:
            store: Counter store; defaults to the shared store of the
                settings' ``REDIS_URL``.
            max_attempts: Override of the mailer's configured ``rate_limit``.
            per_seconds: Override of the mailer's configured ``rate_limit_per``.
            mailer: Mailer to throttle against, whatever the job says.
            settings: Settings; defaults to the process-wide settings.
            scheduler: Queue seam used to release denied jobs.
            backoff: Release delay policy; defaults to the settings' policy.
        """
        self.settings = settings or get_settings()
        self.max_attempts = max_attempts
        self.per_seconds = per_seconds
        self.mailer = mailer
        self.scheduler = scheduler or ReleasingJobScheduler()
        self.backoff = backoff or BackoffPolicy.from_settings(self.settings)
        self.resolver = MailerResolver.standard(
            override=mailer, default=self.settings.MAIL_DEFAULT_MAILER
        )
        self._store = store
        self._engine: Optional[ThrottleDecisionEngine] = None

    @property
    def engine(self) -> ThrottleDecisionEngine:
        if self._engine is None:
            store = self._store or get_default_store(self.settings)
            self._engine = ThrottleDecisionEngine(store)
        return self._engine

    async def handle(
        self, job: Any, call_next: Continuation, channel: Optional[str] = None
    ) -> GateOutcome:
        """
        Run ``call_next(job)`` now or release ``job`` back to the queue.

        Args:
            job: The queued unit of work.
            call_next: Continuation performing the send; sync or async.
            channel: Notification channel when used as notification middleware.

        Returns:
            GateOutcome.CONTINUE if ``call_next`` ran, GateOutcome.DEFER if
            the job was released.

        Raises:
            StoreUnavailableError: Store failure with fail-open disabled.
        """
        if channel is not None and channel != MAIL_CHANNEL:
            await invoke(call_next, job)
            return GateOutcome.CONTINUE

        target = self.resolve_target(job)
        if target is None or not target.is_throttled:
            await invoke(call_next, job)
            return GateOutcome.CONTINUE

        try:
            decision = await self.engine.decide(
                self.throttle_key(target.name), target.rate, target.window_seconds
            )
        except StoreUnavailableError as exc:
            if not self.settings.MAIL_THROTTLE_FAIL_OPEN:
                raise
            logger.warning(
                "Mail throttle store error, failing open",
                error=str(exc),
                mailer=target.name,
            )
            await invoke(call_next, job)
            return GateOutcome.CONTINUE

        if decision.allowed:
            await invoke(call_next, job)
            return GateOutcome.CONTINUE

        attempt = await maybe_await(self.scheduler.attempt_count(job))
        delay = self.backoff.release_delay(
            AttemptContext(attempt=attempt, rate=target.rate, window_seconds=target.window_seconds)
        )
        await maybe_await(self.scheduler.requeue(job, delay))
        logger.info(
            "Mail throttled, job released",
            mailer=target.name,
            attempt=attempt,
            delay=delay,
        )
        return GateOutcome.DEFER

    def resolve_target(self, job: Any) -> Optional[ThrottleTarget]:
        """Mailer of ``job`` with its effective rate, or None."""
        mailer = self.resolver.resolve(job)
        if mailer is None:
            return None
        return ThrottleTarget.from_config(
            mailer,
            self.settings.mailer_config(mailer),
            rate_override=self.max_attempts,
            per_override=self.per_seconds,
        )

    def throttle_key(self, mailer: str) -> ThrottleKey:
        """Prefixed key so apps sharing a Redis never share buckets."""
        return ThrottleKey.build(
            mailer,
            configured_prefix=self.settings.MAIL_THROTTLE_KEY_PREFIX,
            shared_cache_prefix=self.settings.CACHE_PREFIX,
            app_name=self.settings.PROJECT_NAME,
        )
