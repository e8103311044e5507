"""Retry-with-backoff combinator for async operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def exponential_backoff(base_delay: float) -> Callable[[int], float]:
    """Backoff function returning base_delay * 2**attempt for attempt >= 1."""

    def backoff(attempt: int) -> float:
        return base_delay * (2**attempt)

    return backoff


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    *,
    max_retries: int,
    is_retryable: Callable[[Exception], bool],
    backoff: Callable[[int], float],
    sleep: Sleep = asyncio.sleep,
    description: str = "operation",
) -> T:
    """Run operation, retrying retryable failures with backoff.

    The operation receives the current retry count (0 on the first attempt),
    so callers can adapt their own pacing to how often they have been
    throttled. At most max_retries + 1 attempts are made.

    Args:
        operation: Async callable taking the retry count.
        max_retries: Maximum number of retries after the first attempt.
        is_retryable: Predicate deciding whether an exception is transient.
        backoff: Maps the upcoming retry number (1-based) to a delay in seconds.
        sleep: Awaitable sleep, injectable for tests.
        description: Label used in log messages.

    Returns:
        Result of the first successful attempt.

    Raises:
        The last exception once it is not retryable or retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return await operation(attempt)
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                raise
            attempt += 1
            delay = backoff(attempt)
            logger.warning(
                f"{description} throttled, retry {attempt}/{max_retries} in {delay:.3f}s: {e}"
            )
            await sleep(delay)
