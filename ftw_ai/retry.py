"""Retry helper with exponential backoff for hosted provider calls."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def retry(
    *,
    max_attempts: int = 1,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Decorator: retries the wrapped function with exponential backoff.

    The default of a single attempt keeps provider calls fail-fast; callers
    opt in to retries through ``FTW_HTTP_MAX_ATTEMPTS``.
    """
    attempts = max(1, int(max_attempts))

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt == attempts:
                        if attempts > 1:
                            logger.error(
                                "%s failed after %d attempts: %s",
                                fn.__qualname__,
                                attempts,
                                exc,
                            )
                        raise
                    delay = min(
                        base_delay * (backoff_factor ** (attempt - 1)), max_delay
                    )
                    if jitter:
                        delay *= 0.5 + random.random()
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__,
                        attempt,
                        attempts,
                        exc,
                        delay,
                    )
                    sleep(delay)
            raise AssertionError("unreachable")

        return wrapper

    return decorator
