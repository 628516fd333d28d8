"""
Retry delay policy for failed reconciliations.

delay(n) = min(base * 2^(n-1) + jitter, cap), with jitter drawn uniformly
from [0, 1) seconds.
"""

import random
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from ..constants import RETRY_BASE_DELAY, RETRY_MAX_DELAY, RETRY_MAX_JITTER


def calculate_backoff_delay(
    retry_attempt: int,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
    rng: Callable[[], float] = random.random,
) -> float:
    """
    Compute the delay in seconds before the given retry attempt.

    Args:
        retry_attempt: Retry attempt number, starting at 1
        base_delay: Delay for the first retry
        max_delay: Upper bound for any delay
        rng: Source of uniform floats in [0, 1) used for jitter

    Returns:
        Delay in seconds
    """
    if retry_attempt < 1:
        raise ValueError(f"retry_attempt must be >= 1, got {retry_attempt}")

    exponential = base_delay * 2 ** (retry_attempt - 1)
    jitter = rng() * RETRY_MAX_JITTER
    return min(exponential + jitter, max_delay)


def next_retry_time(retry_attempt: int, now: datetime | None = None) -> datetime:
    """Timestamp at which the given retry attempt may run."""
    now = now or datetime.now(UTC)
    return now + timedelta(seconds=calculate_backoff_delay(retry_attempt))
