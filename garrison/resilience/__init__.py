"""Resilience primitives for outbound calls."""

from garrison.resilience.circuit_breaker import CircuitBreaker, CircuitState
from garrison.resilience.retry import backoff_delay, with_retry

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "backoff_delay",
    "with_retry",
]
