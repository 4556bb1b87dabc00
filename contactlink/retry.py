"""
Retry with exponential backoff for storage I/O.

Only StorageError is retried by default: business-rule errors need
corrective input and are re-raised immediately.
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

from .errors import StorageError


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (StorageError,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=2, base_delay=0.1)
        def save(record):
            store.update(record)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

                    current_delay = min(delay, max_delay)
                    if on_retry:
                        on_retry(attempt + 1, e, current_delay)
                    time.sleep(current_delay)
                    delay *= exponential_base

        return wrapper
    return decorator


def call_with_retry(func: Callable, *args, max_retries: int = 2, base_delay: float = 0.1,
                    on_retry: Optional[Callable] = None, **kwargs):
    """Run one call under exponential_backoff without decorating func permanently."""
    wrapped = exponential_backoff(
        max_retries=max_retries,
        base_delay=base_delay,
        on_retry=on_retry,
    )(func)
    return wrapped(*args, **kwargs)
