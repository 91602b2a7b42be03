"""Retry with exponential backoff for provider calls.

Only read operations are wrapped, so retrying never duplicates effects.
"""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from divvy.data.errors import ErrorKind, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters for one class of operation.

    Attributes:
        max_attempts: Total attempts including the first call.
        base_delay: Delay before the first retry in seconds.
        max_delay: Upper bound on any single delay in seconds.
        backoff_multiplier: Growth factor per attempt.
        jitter_factor: Random extra delay as a fraction of the base delay.
        retryable_kinds: Error kinds worth retrying.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1
    retryable_kinds: frozenset[ErrorKind] = frozenset(
        {ErrorKind.NETWORK, ErrorKind.RATE_LIMIT, ErrorKind.DATA_SOURCE}
    )


def calc_retry_delay(
    attempt: int,
    policy: RetryPolicy,
    rand: Callable[[], float] = random.random,
) -> float:
    """Delay after a failed attempt.

    delay = min(max_delay, base * multiplier^(attempt-1) * (1 + jitter * rand()))

    Args:
        attempt: 1-based number of the attempt that just failed.
        policy: Retry policy.
        rand: Source of uniform [0, 1) values.

    Returns:
        Delay in seconds.

    Example:
        >>> calc_retry_delay(3, RetryPolicy(jitter_factor=0), rand=lambda: 0.5)
        4.0
    """
    base = policy.base_delay * policy.backoff_multiplier ** (attempt - 1)
    return min(policy.max_delay, base * (1 + policy.jitter_factor * rand()))


def with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    rand: Callable[[], float] = random.random,
    description: str = "operation",
) -> T:
    """Run operation, retrying retryable failures per policy.

    Errors whose kind is not in policy.retryable_kinds are re-raised at once.
    When attempts run out the last error is re-raised unchanged.

    Args:
        operation: Zero-argument callable to run.
        policy: Retry policy (default RetryPolicy()).
        sleep: Sleep function, injectable for tests.
        rand: Jitter source, injectable for tests.
        description: Label for log messages.

    Returns:
        The operation's result.
    """
    policy = policy or RetryPolicy()

    attempt = 1
    while True:
        try:
            return operation()
        except Exception as e:
            kind = classify_error(e)
            if kind not in policy.retryable_kinds:
                raise

            if attempt >= policy.max_attempts:
                logger.error(f"{description} failed after {attempt} attempts: {e}")
                raise

            delay = calc_retry_delay(attempt, policy, rand)
            logger.warning(
                f"{description} attempt {attempt}/{policy.max_attempts} failed "
                f"({kind.value}): {e}. Retrying in {delay:.2f}s"
            )
            sleep(delay)
            attempt += 1
