"""Circuit breaker for upstream data sources.

One breaker exists per upstream operation (e.g. "yahoo.quote") and is shared
by every analysis running in the process, so its state is lock-protected.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from divvy.data.errors import DataSourceError, is_symbol_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

CIRCUIT_BREAKER_SOURCE = "circuit_breaker"


@dataclass
class CircuitBreakerState:
    """Mutable breaker state.

    Transitions:
        closed --(failure_count reaches threshold)--> open
        open --(recovery_time elapsed since last failure)--> closed (half-open trial)
        any --(success)--> failure_count = 0
    """

    failure_count: int = 0
    last_failure_time: float | None = None
    is_open: bool = False

    def record_success(self) -> None:
        self.failure_count = 0

    def record_failure(self, now: float, threshold: int) -> None:
        self.failure_count += 1
        self.last_failure_time = now
        if self.failure_count >= threshold:
            self.is_open = True

    def try_reset(self, now: float, recovery_time: float) -> bool:
        """Close an open breaker whose recovery window has passed."""
        if (
            self.is_open
            and self.last_failure_time is not None
            and now - self.last_failure_time >= recovery_time
        ):
            self.is_open = False
            self.failure_count = 0
            return True
        return False


class CircuitBreaker:
    """Fail fast after repeated failures of one operation.

    Usage:
        breaker = CircuitBreaker("yahoo.quote", failure_threshold=5, recovery_time=60)
        quote = breaker.call(lambda: provider.get_quote("KO"))
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_time: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            name: Operation identifier, e.g. "alpha_vantage.dividends".
            failure_threshold: Consecutive failures that open the breaker.
            recovery_time: Seconds after the last failure before a trial call.
            clock: Monotonic time source, injectable for tests.
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_time = recovery_time
        self._clock = clock
        self._state = CircuitBreakerState()
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitBreakerState:
        """Copy of the current state."""
        with self._lock:
            return CircuitBreakerState(
                failure_count=self._state.failure_count,
                last_failure_time=self._state.last_failure_time,
                is_open=self._state.is_open,
            )

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._state.is_open

    def call(self, operation: Callable[[], T]) -> T:
        """Run operation through the breaker.

        Symbol errors (unknown ticker, missing data) propagate without
        counting as failures.

        Raises:
            DataSourceError: source "circuit_breaker", when the breaker is open.
            Exception: Whatever the operation raised.
        """
        with self._lock:
            if self._state.try_reset(self._clock(), self.recovery_time):
                logger.info(f"Circuit breaker {self.name} half-open, allowing trial call")
            if self._state.is_open:
                raise DataSourceError(
                    f"Circuit breaker {self.name} is open - service temporarily unavailable",
                    CIRCUIT_BREAKER_SOURCE,
                    retryable=False,
                )

        try:
            result = operation()
        except Exception as e:
            if is_symbol_error(e):
                raise
            with self._lock:
                was_open = self._state.is_open
                self._state.record_failure(self._clock(), self.failure_threshold)
                if self._state.is_open and not was_open:
                    logger.warning(
                        f"Circuit breaker {self.name} opened after "
                        f"{self._state.failure_count} consecutive failures"
                    )
            raise

        with self._lock:
            self._state.record_success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._state = CircuitBreakerState()


class CircuitBreakerRegistry:
    """Breakers keyed by "<provider>.<operation>", created on first use."""

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_time: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_time = recovery_time
        self._clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, provider: str, operation: str) -> CircuitBreaker:
        """Get (or create) the breaker for one provider operation."""
        key = f"{provider}.{operation}"
        with self._lock:
            breaker = self._breakers.get(key)
            if breaker is None:
                breaker = CircuitBreaker(
                    key,
                    failure_threshold=self.failure_threshold,
                    recovery_time=self.recovery_time,
                    clock=self._clock,
                )
                self._breakers[key] = breaker
            return breaker

    def open_breakers(self) -> list[str]:
        """Names of breakers currently open."""
        with self._lock:
            breakers = list(self._breakers.values())
        return [breaker.name for breaker in breakers if breaker.is_open]

    def reset_all(self) -> None:
        with self._lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()
