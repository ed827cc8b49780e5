"""Default job scheduler: the job releases itself.

Most queue libraries let a running job put itself back on the queue with a
delay and expose how many times it has been tried. ``ReleasingJobScheduler``
adapts that shape (``job.release(delay)`` and ``job.attempts()`` or an
``attempts`` attribute) to the ``JobScheduler`` interface.
"""

from typing import Any

from mail_throttle.domain.interfaces.queue import JobScheduler
from mail_throttle.utils.awaitables import maybe_await


class ReleasingJobScheduler(JobScheduler):

    async def requeue(self, job: Any, delay_seconds: int) -> None:
        release = getattr(job, "release", None)
        if release is None:
            raise TypeError(f"{type(job).__name__} cannot be released back to the queue")
        await maybe_await(release(delay_seconds))

    async def attempt_count(self, job: Any) -> int:
        attempts = getattr(job, "attempts", None)
        if callable(attempts):
            attempts = await maybe_await(attempts())
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            return 1
        return attempts
