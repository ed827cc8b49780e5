"""Structured exception hierarchy for mail-throttle.

Every error raised by the package carries a machine-readable ``code`` next to
the human-readable ``message`` so workers can log and branch on failures
without string matching.

Only one failure kind originates in the throttling core itself: the shared
counter store could not answer. Everything else (misconfigured mailers, odd
numeric inputs) is handled by pass-through or clamping rather than raising.
"""

from __future__ import annotations

from typing import Final

__all__: Final = [
    "MailThrottleError",
    "StoreUnavailableError",
]


class MailThrottleError(Exception):
    """Base exception class for all custom errors in mail-throttle.

    Attributes:
        message (str): A human-readable error message, suitable for logging.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


class StoreUnavailableError(MailThrottleError):
    """Raised when the shared counter store cannot be reached or errors.

    This is deliberately distinct from a DENY decision. The dispatch gate
    decides, based on ``MAIL_THROTTLE_FAIL_OPEN``, whether to proceed
    unthrottled or to re-raise this exception to the queue worker. The
    original client error is available as ``__cause__``.

    Attributes:
        key (str | None): The throttle key that was being checked, if known.
    """

    def __init__(
        self,
        message: str = "Mail throttle store is unavailable",
        code: str = "store_unavailable",
        key: str | None = None,
    ):
        super().__init__(message, code)
        self.key = key
