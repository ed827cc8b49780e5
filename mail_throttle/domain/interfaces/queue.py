"""Queue collaborator interface.

The throttle never re-runs work itself. A denied job is handed to a
``JobScheduler``, which owns the job's attempt counter and re-invokes the
whole middleware chain once the delay has passed.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Union


class JobScheduler(ABC):
    """Requeue-with-delay seam of the queue infrastructure.

    Implementations may be synchronous or asynchronous; callers await the
    result when it is awaitable.
    """

    @abstractmethod
    def requeue(self, job: Any, delay_seconds: int) -> Union[None, Awaitable[None]]:
        """Schedule ``job`` for another attempt in ``delay_seconds`` seconds.

        Args:
            job: The unit of work that was denied.
            delay_seconds: Release delay, at least 1.
        """
        pass

    @abstractmethod
    def attempt_count(self, job: Any) -> Union[int, Awaitable[int]]:
        """Return how many times ``job`` has been attempted, 1 if unknown."""
        pass
