"""Circuit breaker for calls to the shared counter store.

When Redis is down every throttle check would otherwise wait for a socket
timeout before the fail-open/fail-closed policy kicks in. The breaker counts
consecutive store failures and, once the threshold is reached, rejects calls
immediately for ``reset_timeout`` seconds.

State Transitions:
- CLOSED: calls go through. ``failure_threshold`` consecutive failures open
  the circuit.
- OPEN: calls are rejected with ``CircuitBreakerError`` until
  ``reset_timeout`` seconds have passed since the last failure, then the
  circuit becomes HALF_OPEN.
- HALF_OPEN: exactly one call is let through as a trial while every other
  call is rejected. Success closes the circuit, failure opens it again.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Callable, Coroutine, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreakerError(Exception):
    """Raised when the circuit breaker is open."""

    def __init__(self, breaker_name: str, message: Optional[str] = None):
        self.breaker_name = breaker_name
        if message is None:
            message = f"Circuit breaker {breaker_name} is open"
        self.message = message
        super().__init__(self.message)


class CircuitBreaker:
    """Asyncio circuit breaker.

    The lock only protects the breaker's own counters; the wrapped call runs
    outside of it so concurrent store calls are never serialised here.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 30,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initializes the CircuitBreaker.

        Args:
            failure_threshold: Consecutive failures required to open the circuit.
            reset_timeout: Seconds to stay OPEN before allowing a trial call.
            name: Name used in logs and in ``CircuitBreakerError``.
            clock: Monotonic time source, injectable for tests.
        """
        self.failure_threshold = max(1, failure_threshold)
        self.reset_timeout = reset_timeout
        self.name = name
        self._clock = clock

        self.failures = 0
        self.last_failure_time: Optional[float] = None
        self.state = BreakerState.CLOSED
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        """Return True while calls must be rejected.

        Moves an expired OPEN circuit to HALF_OPEN as a side effect.
        """
        if self.state is BreakerState.OPEN:
            if (
                self.last_failure_time is not None
                and self._clock() - self.last_failure_time >= self.reset_timeout
            ):
                self.state = BreakerState.HALF_OPEN
                logger.info("Circuit breaker transitioning to half-open", breaker=self.name)
                return False
            return True
        return False

    async def allow_request(self) -> bool:
        """Admit a call, letting a single trial through while HALF_OPEN."""
        async with self._lock:
            if self.is_open:
                return False
            if self.state is BreakerState.HALF_OPEN:
                if self._trial_in_flight:
                    return False
                self._trial_in_flight = True
            return True

    async def record_success(self) -> None:
        """Record a successful call, closing the circuit if half-open."""
        async with self._lock:
            self._trial_in_flight = False
            if self.state is BreakerState.HALF_OPEN:
                self.state = BreakerState.CLOSED
                self.last_failure_time = None
                logger.info("Circuit breaker closed after successful half-open call", breaker=self.name)
            self.failures = 0

    async def record_failure(self) -> None:
        """Record a failure, opening the circuit at the threshold."""
        async with self._lock:
            self._trial_in_flight = False
            self.failures += 1
            self.last_failure_time = self._clock()
            if self.state is BreakerState.HALF_OPEN or self.failures >= self.failure_threshold:
                if self.state is not BreakerState.OPEN:
                    self.state = BreakerState.OPEN
                    logger.warning(
                        "Circuit breaker opened",
                        breaker=self.name,
                        failures=self.failures,
                    )

    async def execute(self, func: Callable[..., Coroutine[Any, Any, T]], *args: Any, **kwargs: Any) -> T:
        """Execute an async function with circuit breaker protection.

        Raises:
            CircuitBreakerError: If the circuit is open.
            Exception: Propagates exceptions from the executed function.
        """
        if not await self.allow_request():
            raise CircuitBreakerError(self.name)

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            await self.record_failure()
            logger.debug("Circuit breaker recorded failure", breaker=self.name, error=str(e))
            raise
        except asyncio.CancelledError:
            # no verdict from a cancelled call
            self._trial_in_flight = False
            raise
        await self.record_success()
        return result
