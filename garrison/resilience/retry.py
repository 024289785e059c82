"""Retry with exponential backoff for async operations."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from garrison.errors import log_error
from garrison.observability.logging import get_logger
from garrison.observability.metrics import RETRY_ATTEMPTS

logger = get_logger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[Any]]


def backoff_delay(delay: float, attempt: int) -> float:
    """Wait before the next attempt: delay * 2^(attempt-1)."""
    return delay * (2 ** (attempt - 1))


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    delay: float = 1.0,
    *,
    operation: str = "operation",
    sleep: Sleeper = asyncio.sleep,
    **context: Any,
) -> T:
    """Await fn, retrying failures with exponential backoff.

    Args:
        fn: Zero-argument coroutine factory, called once per attempt
        max_retries: Total number of attempts
        delay: Base delay in seconds before the second attempt
        operation: Label used in logs and metrics
        sleep: Awaitable sleep, injectable for tests
        **context: Extra fields added to the attempt logs

    Returns:
        The first successful result

    Raises:
        The exception from the last attempt once retries are exhausted
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as e:
            RETRY_ATTEMPTS.labels(operation=operation).inc()

            if attempt >= max_retries:
                log_error(
                    e,
                    operation=operation,
                    attempt=attempt,
                    max_retries=max_retries,
                    **context,
                )
                raise

            wait_time = backoff_delay(delay, attempt)
            logger.warning(
                "retry_attempt_failed",
                operation=operation,
                error=str(e),
                attempt=attempt,
                max_retries=max_retries,
                wait_time=wait_time,
                **context,
            )
            await sleep(wait_time)
            attempt += 1
