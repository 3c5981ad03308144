"""Retry decorator for provider lookups."""

import functools
import logging
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

P = ParamSpec("P")
T = TypeVar("T")

logger = logging.getLogger("alltickers")


def retry(
    max_attempts: int = 3,
    delay: float = 0.5,
    backoff: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Retry decorator with optional exponential backoff.

    Only the listed exceptions are retried; anything else propagates on the
    first attempt. The last caught exception is re-raised once attempts
    run out.

    Args:
        max_attempts: Total number of attempts (at least 1).
        delay: Delay before the second attempt, in seconds.
        backoff: Multiplier applied to the delay after each retry.
        exceptions: Tuple of exceptions to catch and retry on.

    Returns:
        Decorated function with retry logic.
    """
    attempts = max(max_attempts, 1)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            current_delay = delay

            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        raise
                    logger.debug(
                        f"{getattr(func, '__name__', 'call')} attempt {attempt}/{attempts} failed: {e}"
                    )
                    if current_delay > 0:
                        time.sleep(current_delay)
                    current_delay *= backoff

            raise AssertionError("unreachable")

        return wrapper

    return decorator
