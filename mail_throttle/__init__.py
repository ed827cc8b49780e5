"""Distributed rate limiting for queued email dispatch.

Workers share one Redis counter per mailer; every send is gated by an atomic,
zero-wait check and denied jobs go back to the queue with a jittered,
exponentially growing delay.
"""

from mail_throttle.core.exceptions import MailThrottleError, StoreUnavailableError
from mail_throttle.domain.throttling import (
    AcquireResult,
    AttemptContext,
    BackoffPolicy,
    ThrottleDecision,
    ThrottleDecisionEngine,
    ThrottleKey,
    ThrottleStore,
    ThrottleTarget,
    build_throttle_key,
    compute_release_delay,
)
from mail_throttle.middleware import GateOutcome, ThrottleMail, ThrottlesMail, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "AcquireResult",
    "AttemptContext",
    "BackoffPolicy",
    "GateOutcome",
    "MailThrottleError",
    "StoreUnavailableError",
    "ThrottleDecision",
    "ThrottleDecisionEngine",
    "ThrottleKey",
    "ThrottleMail",
    "ThrottleStore",
    "ThrottleTarget",
    "ThrottlesMail",
    "build_throttle_key",
    "compute_release_delay",
    "run_pipeline",
]
