"""Mail Throttling Domain

Value objects, the store contract, the decision engine, the release delay
calculator and mailer resolution. Nothing in here talks to Redis directly.
"""

from .backoff import BackoffPolicy, compute_release_delay
from .repositories import ThrottleStore
from .resolvers import MailerResolver
from .services import ThrottleDecisionEngine
from .value_objects import (
    AcquireResult,
    AttemptContext,
    ThrottleDecision,
    ThrottleKey,
    ThrottleTarget,
    build_throttle_key,
)

__all__ = [
    "AcquireResult",
    "AttemptContext",
    "BackoffPolicy",
    "MailerResolver",
    "ThrottleDecision",
    "ThrottleDecisionEngine",
    "ThrottleKey",
    "ThrottleStore",
    "ThrottleTarget",
    "build_throttle_key",
    "compute_release_delay",
]
