"""Job middleware pipeline and the ``ThrottlesMail`` opt-in mixin.

A middleware is any object with ``async handle(job, call_next)``. The
pipeline nests them around a destination (the actual send), first element
outermost, so each middleware decides whether to call the rest.

Opting a job class into throttling::

    class SendInvoiceEmail(ThrottlesMail):
        mailer = "resend"

        def additional_middleware(self):
            return [AuditMiddleware()]

    await job.run_through_middleware(send_invoice)
"""

from typing import Any, Awaitable, Callable, List, Protocol, Sequence, Union

from mail_throttle.utils.awaitables import invoke

from .throttle_mail import ThrottleMail

Destination = Callable[[Any], Union[Any, Awaitable[Any]]]


class Middleware(Protocol):
    async def handle(self, job: Any, call_next: Destination) -> Any:
        ...


async def run_pipeline(job: Any, middleware: Sequence[Middleware], destination: Destination) -> Any:
    """Send ``job`` through ``middleware`` and finally to ``destination``.

    Returns:
        Whatever the outermost middleware returns, or the destination's
        result when the list is empty.
    """
    stack = list(middleware)

    async def dispatch(index: int, current: Any) -> Any:
        if index == len(stack):
            return await invoke(destination, current)

        async def call_next(passed: Any) -> Any:
            return await dispatch(index + 1, passed)

        return await stack[index].handle(current, call_next)

    return await dispatch(0, job)


class ThrottlesMail:
    """Mixin adding the mail throttle in front of a job's own middleware.

    Requires a mailer with ``rate_limit`` in ``MAIL_MAILERS``; otherwise the
    throttle is a pass-through.
    """

    def middleware(self) -> List[Middleware]:
        return [self.throttle_middleware(), *self.additional_middleware()]

    def throttle_middleware(self) -> ThrottleMail:
        """Override to inject a store or per-job overrides."""
        return ThrottleMail()

    def additional_middleware(self) -> List[Middleware]:
        """Override to add more middleware while keeping throttling."""
        return []

    async def run_through_middleware(self, destination: Destination) -> Any:
        return await run_pipeline(self, self.middleware(), destination)
