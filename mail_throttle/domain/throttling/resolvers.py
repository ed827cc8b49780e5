"""
Mailer resolution for queued work.

A queued unit of work can name its mailer in several shapes: the job may be
a mailable or notification carrying ``mailer`` itself, or a queue wrapper
holding one under ``mailable`` or ``notification``. ``MailerResolver`` tries
an ordered list of strategies and stops at the first one returning a name.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional

MailerStrategy = Callable[[Any], Optional[str]]


def _mailer_of(obj: Any) -> Optional[str]:
    mailer = getattr(obj, "mailer", None)
    if isinstance(mailer, str) and mailer.strip():
        return mailer
    return None


def explicit_mailer(mailer: Optional[str]) -> MailerStrategy:
    """Strategy returning a fixed mailer, whatever the job."""
    def strategy(job: Any) -> Optional[str]:
        return mailer if mailer else None
    return strategy


def job_mailer(job: Any) -> Optional[str]:
    """The job is itself a mailable or notification with a mailer set."""
    return _mailer_of(job)


def wrapped_mailable_mailer(job: Any) -> Optional[str]:
    """The job wraps a mailable (queued mailable)."""
    mailable = getattr(job, "mailable", None)
    return _mailer_of(mailable) if mailable is not None else None


def wrapped_notification_mailer(job: Any) -> Optional[str]:
    """The job wraps a notification (queued notification)."""
    notification = getattr(job, "notification", None)
    return _mailer_of(notification) if notification is not None else None


def default_mailer(mailer: Optional[str]) -> MailerStrategy:
    """Strategy returning the system default mailer."""
    return explicit_mailer(mailer)


class MailerResolver:
    """Ordered chain of mailer lookup strategies."""

    def __init__(self, strategies: Iterable[MailerStrategy]):
        self.strategies: List[MailerStrategy] = list(strategies)

    @classmethod
    def standard(cls, override: Optional[str] = None, default: Optional[str] = None) -> MailerResolver:
        """Explicit override, job, wrapped mailable, wrapped notification, default."""
        return cls([
            explicit_mailer(override),
            job_mailer,
            wrapped_mailable_mailer,
            wrapped_notification_mailer,
            default_mailer(default),
        ])

    def resolve(self, job: Any) -> Optional[str]:
        for strategy in self.strategies:
            mailer = strategy(job)
            if mailer:
                return mailer
        return None
