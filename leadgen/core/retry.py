"""Bounded retry helper used for Places continuation tokens."""

import logging
import time
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    max_attempts: int,
    delay: float,
    should_retry: Callable[[T], bool],
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Call ``operation`` until ``should_retry`` rejects its result or attempts run out.

    The last result is returned either way; callers that care whether the
    budget was exhausted apply ``should_retry`` to it again. Exceptions raised
    by ``operation`` propagate immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    sleeper = sleep or time.sleep

    attempt = 0
    while True:
        attempt += 1
        result = operation()
        if not should_retry(result):
            return result
        if attempt >= max_attempts:
            logger.warning("Giving up after %d attempts", attempt)
            return result
        logger.debug("Attempt %d/%d not ready; sleeping %.1fs", attempt, max_attempts, delay)
        sleeper(delay)
