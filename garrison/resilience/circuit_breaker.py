"""Circuit breaker for outbound dependencies.

CLOSED counts consecutive failures and opens at the threshold. OPEN
rejects calls until the timeout elapses, then lets a single trial call
through in HALF_OPEN: success closes the breaker, failure re-opens it.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from garrison.errors import ExternalServiceError
from garrison.observability.logging import get_logger
from garrison.observability.metrics import (
    CIRCUIT_BREAKER_STATE,
    CIRCUIT_BREAKER_TRANSITIONS,
)

logger = get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    """Breaker states."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


_STATE_GAUGE = {
    CircuitState.CLOSED: 0,
    CircuitState.HALF_OPEN: 1,
    CircuitState.OPEN: 2,
}


class CircuitBreaker:
    """Stops calling a failing dependency for a cooldown period.

    Example:
        breaker = CircuitBreaker(failure_threshold=3, timeout=30.0, name="email")
        await breaker.execute(lambda: sender.send(notification, recipient))
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: float = 60.0,
        *,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the breaker.

        Args:
            failure_threshold: Consecutive failures that open the breaker
            timeout: Seconds to stay open before allowing a trial call
            name: Label for logs and metrics
            clock: Monotonic time source, injectable for tests
        """
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")

        self._failure_threshold = failure_threshold
        self._timeout = timeout
        self._name = name
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_time = 0.0
        self._trial_in_flight = False
        self._lock = asyncio.Lock()

        CIRCUIT_BREAKER_STATE.labels(breaker=name).set(_STATE_GAUGE[self._state])

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failures(self) -> int:
        return self._failures

    async def execute(
        self, fn: Callable[[], Awaitable[T]], **context: Any
    ) -> T:
        """Run fn through the breaker.

        While half-open only the single trial call decides whether the
        breaker closes or reopens. Calls that started earlier and finish
        during the trial only update the failure count.

        Raises:
            ExternalServiceError: If the breaker is open, or half-open with
                its trial call already in flight
        """
        is_trial = False
        async with self._lock:
            if self._state == CircuitState.OPEN:
                if self._clock() - self._last_failure_time >= self._timeout:
                    self._transition(CircuitState.HALF_OPEN, **context)
                else:
                    raise self._rejection(context)

            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise self._rejection(context)
                self._trial_in_flight = True
                is_trial = True

        try:
            result = await fn()
        except Exception:
            async with self._lock:
                if is_trial:
                    self._trial_in_flight = False
                self._record_failure(is_trial, **context)
            raise

        async with self._lock:
            if is_trial:
                self._trial_in_flight = False
                self._reset(**context)
            elif self._state == CircuitState.CLOSED:
                self._failures = 0

        return result

    def _record_failure(self, is_trial: bool, **context: Any) -> None:
        self._failures += 1
        self._last_failure_time = self._clock()

        if self._state == CircuitState.HALF_OPEN:
            if is_trial:
                self._transition(CircuitState.OPEN, failures=self._failures, **context)
        elif (
            self._state == CircuitState.CLOSED
            and self._failures >= self._failure_threshold
        ):
            self._transition(CircuitState.OPEN, failures=self._failures, **context)

    def _reset(self, **context: Any) -> None:
        self._failures = 0
        self._transition(CircuitState.CLOSED, **context)

    def _transition(self, to_state: CircuitState, **context: Any) -> None:
        from_state = self._state
        self._state = to_state

        CIRCUIT_BREAKER_TRANSITIONS.labels(
            breaker=self._name, to_state=to_state.value
        ).inc()
        CIRCUIT_BREAKER_STATE.labels(breaker=self._name).set(_STATE_GAUGE[to_state])

        log = logger.warning if to_state == CircuitState.OPEN else logger.info
        log(
            "circuit_breaker_state_changed",
            breaker=self._name,
            from_state=from_state.value,
            to_state=to_state.value,
            **context,
        )

    def _rejection(self, context: dict[str, Any]) -> ExternalServiceError:
        return ExternalServiceError(
            "Circuit Breaker",
            "Service is currently unavailable",
            {"breaker": self._name, "state": self._state.value, **context},
        )
