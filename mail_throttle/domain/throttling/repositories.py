"""
Mail Throttling Repositories

Repository interface for the shared counter store. The domain depends on
this abstraction only; the Redis implementation lives in
``mail_throttle.infrastructure.throttle_store``.

Contract:
- ``try_acquire`` is atomic across every process talking to the store
- ``try_acquire`` never waits for a slot to free up
- bucket state expires on its own once the window has passed
- store failures raise ``StoreUnavailableError``, never a DENY
"""

from abc import ABC, abstractmethod

from .value_objects import AcquireResult, ThrottleKey


class ThrottleStore(ABC):
    """Atomic, auto-expiring counter shared by all workers."""

    @abstractmethod
    async def try_acquire(self, key: ThrottleKey, limit: int, window_seconds: int) -> AcquireResult:
        """
        Count one attempt against ``key`` and report whether it fits.

        Two concurrent callers must never both be allowed when only one
        slot remains in the window.

        Args:
            key: Bucket identifier.
            limit: Attempts allowed per window.
            window_seconds: Window length in seconds.

        Returns:
            AcquireResult with ``allowed`` set accordingly.

        Raises:
            StoreUnavailableError: When the store cannot be reached or errors.
        """
        pass
