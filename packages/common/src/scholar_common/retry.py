"""Retry and backoff patterns using tenacity.

Provides retry strategies for outbound Scholar requests. Waits grow
exponentially: ``min_wait * 2^(attempt-1)``, capped at ``max_wait``.
"""

from typing import Callable, Optional, Type

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


def retry_on_exception(
    exception_types: tuple[Type[Exception], ...],
    max_attempts: int = 3,
    min_wait_seconds: float = 1.0,
    max_wait_seconds: float = 10.0,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
) -> Callable:
    """Decorator for retrying functions that may raise specific exceptions.

    Uses exponential backoff: wait = min(max_wait, min_wait * 2^(attempt-1)).
    Works for both plain and ``async def`` functions.

    Args:
        exception_types: Tuple of exception types to retry on
        max_attempts: Maximum number of attempts, first call included (default: 3)
        min_wait_seconds: Wait before the first retry (default: 1.0s)
        max_wait_seconds: Maximum wait time between retries (default: 10.0s)
        before_sleep: Optional hook called before each backoff sleep

    Returns:
        Decorator function

    Example:
        >>> @retry_on_exception((RateLimitResponse,), max_attempts=4, min_wait_seconds=5.0)
        ... async def send_once(url: str) -> httpx.Response:
        ...     return await client.get(url)
    """
    return retry(
        retry=retry_if_exception_type(exception_types),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=min_wait_seconds,
            min=min_wait_seconds,
            max=max_wait_seconds,
        ),
        before_sleep=before_sleep,
        reraise=True,  # Re-raise exception after exhausting retries
    )
