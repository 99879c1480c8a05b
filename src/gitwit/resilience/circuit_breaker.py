"""Circuit breaker guarding calls to an AI provider."""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Failing, reject requests
    HALF_OPEN = "half_open"  # Cooldown elapsed, next call probes the service


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 3  # Consecutive failures before opening
    recovery_timeout: float = 60.0  # Seconds before a probe is let through

    def __post_init__(self):
        if self.failure_threshold < 1:
            raise ValueError(f"failure_threshold must be >= 1, got {self.failure_threshold}")
        if self.recovery_timeout < 0:
            raise ValueError(f"recovery_timeout must be >= 0, got {self.recovery_timeout}")


@dataclass
class BreakerState:
    """Mutable counters of a single breaker."""
    consecutive_failures: int = 0
    last_failure_time: Optional[float] = None
    is_open: bool = False


@dataclass
class CircuitBreaker:
    """Consecutive-failure circuit breaker with a lazily evaluated cooldown.

    There is no timer: the transition out of OPEN happens inside
    :meth:`is_open` the first time it is queried after the cooldown.
    """

    name: str = "default"
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    clock: Callable[[], float] = time.monotonic

    # Internal state
    _state: BreakerState = field(default_factory=BreakerState, init=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False)

    def __post_init__(self):
        """Initialize after dataclass creation."""
        logger.info(f"Circuit breaker '{self.name}' initialized with config: {self.config}")

    @property
    def consecutive_failures(self) -> int:
        return self._state.consecutive_failures

    @property
    def last_failure_time(self) -> Optional[float]:
        return self._state.last_failure_time

    @property
    def state(self) -> CircuitState:
        """Get current state without triggering the half-open reset."""
        with self._lock:
            if not self._state.is_open:
                return CircuitState.CLOSED
            if self._cooldown_elapsed():
                return CircuitState.HALF_OPEN
            return CircuitState.OPEN

    def _cooldown_elapsed(self) -> bool:
        return (
            self._state.last_failure_time is not None
            and self.clock() - self._state.last_failure_time > self.config.recovery_timeout
        )

    def _remaining_timeout(self) -> float:
        if self._state.last_failure_time is None:
            return 0.0
        elapsed = self.clock() - self._state.last_failure_time
        return max(0.0, self.config.recovery_timeout - elapsed)

    def is_open(self) -> bool:
        """Whether calls are currently rejected.

        An open breaker whose cooldown has elapsed is reset to closed here,
        so the call that asked is allowed through as the probe.
        """
        with self._lock:
            if not self._state.is_open:
                return False

            if self._cooldown_elapsed():
                self._state.is_open = False
                self._state.consecutive_failures = 0
                logger.info(f"Circuit breaker '{self.name}' has been reset after cooldown")
                return False
            return True

    def record_failure(self):
        """Record one failed logical call."""
        with self._lock:
            self._state.consecutive_failures += 1
            self._state.last_failure_time = self.clock()
            logger.warning(
                f"Circuit breaker '{self.name}' failure: "
                f"{self._state.consecutive_failures}/{self.config.failure_threshold}"
            )

            if self._state.consecutive_failures >= self.config.failure_threshold:
                if not self._state.is_open:
                    logger.warning(
                        f"Circuit breaker '{self.name}' has OPENED after "
                        f"{self._state.consecutive_failures} failures"
                    )
                self._state.is_open = True

    def record_success(self):
        """Record one successful logical call."""
        with self._lock:
            if self._state.is_open or self._state.consecutive_failures:
                logger.info(f"Circuit breaker '{self.name}' closed after success")
            self._state.consecutive_failures = 0
            self._state.is_open = False

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` through the breaker.

        Raises:
            CircuitOpenError: the breaker is open; ``operation`` is not invoked.
        """
        if self.is_open():
            with self._lock:
                remaining = self._remaining_timeout()
            raise CircuitOpenError(self.name, remaining)

        try:
            result = await operation()
        except asyncio.CancelledError:
            raise
        except Exception:
            self.record_failure()
            raise

        self.record_success()
        return result

    # Alias matching the gate-then-run wording used by callers
    guard = call

    def reset(self):
        """Manually reset the circuit breaker."""
        with self._lock:
            self._state = BreakerState()
            logger.info(f"Circuit breaker '{self.name}' manually reset")

    def snapshot(self) -> BreakerState:
        """Return a copy of the current counters."""
        with self._lock:
            return replace(self._state)

    def get_status(self) -> dict:
        """Get current status of circuit breaker."""
        with self._lock:
            return {
                "name": self.name,
                "state": self.state.value,
                "consecutive_failures": self._state.consecutive_failures,
                "remaining_timeout": self._remaining_timeout() if self._state.is_open else 0.0,
                "config": {
                    "failure_threshold": self.config.failure_threshold,
                    "recovery_timeout": self.config.recovery_timeout,
                },
            }


def circuit_breaker(name: str, **config_kwargs) -> Callable:
    """Decorator to put a coroutine function behind its own circuit breaker."""
    breaker = CircuitBreaker(name, CircuitBreakerConfig(**config_kwargs))

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        async def wrapper(*args, **kwargs):
            return await breaker.call(lambda: func(*args, **kwargs))
        wrapper._circuit_breaker = breaker  # Expose breaker for testing/monitoring
        return wrapper
    return decorator
