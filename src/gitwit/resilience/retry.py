"""Retry logic with exponential backoff for async AI calls."""

import asyncio
import logging
import random
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .errors import get_status, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_jitter: float = 1.0  # seconds, jitter is drawn from [0, max_jitter)
    retryable: Callable[[BaseException], bool] = is_retryable

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.max_jitter < 0:
            raise ValueError("base_delay and max_jitter must be non-negative")


def calculate_backoff_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate the delay before retry number ``attempt`` (0 for the first retry)."""
    delay = config.base_delay * (2 ** attempt)

    if config.max_jitter:
        delay += random.uniform(0, config.max_jitter)

    return delay


class RetryExecutor:
    """Runs an async operation until it succeeds, fails fatally, or runs out of attempts."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Sleep = asyncio.sleep,
        on_retry: Optional[Callable[[BaseException, int, float], None]] = None,
    ):
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._on_retry = on_retry

    async def run(self, operation: Operation) -> T:
        """Execute ``operation`` with retries.

        The error from the last attempt is re-raised unchanged once attempts
        are exhausted. Non-retryable errors are re-raised after the attempt
        that produced them.
        """
        for attempt in range(self.config.max_attempts):
            try:
                return await operation()
            except Exception as e:
                if not self.config.retryable(e):
                    logger.debug(f"Non-retryable error (status={get_status(e)}): {e}")
                    raise

                if attempt == self.config.max_attempts - 1:
                    logger.error(
                        f"Retry exhausted after {self.config.max_attempts} attempts. "
                        f"Last error: {e}"
                    )
                    raise

                delay = calculate_backoff_delay(attempt, self.config)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.config.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.2f}s..."
                )

                if self._on_retry:
                    self._on_retry(e, attempt + 1, delay)

                await self._sleep(delay)

        # max_attempts >= 1 means the loop always returns or raises
        raise RuntimeError("All retry attempts failed")


def retry_with_backoff(
    func: Optional[Callable[..., Awaitable[Any]]] = None,
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_jitter: float = 1.0,
    retryable: Callable[[BaseException], bool] = is_retryable,
    on_retry: Optional[Callable[[BaseException, int, float], None]] = None,
    sleep: Sleep = asyncio.sleep,
):
    """
    Retry decorator for coroutine functions.

    Args:
        func: Coroutine function to retry (when used as @retry_with_backoff)
        max_attempts: Maximum number of attempts, including the first one
        base_delay: Delay in seconds before the first retry, doubled each retry
        max_jitter: Upper bound in seconds of the random jitter added to each delay
        retryable: Predicate deciding which errors are transient
        on_retry: Optional callback called with (error, attempt, delay)
        sleep: Awaitable sleep used between attempts

    Returns:
        Decorated function or decorator
    """
    config = RetryConfig(
        max_attempts=max_attempts,
        base_delay=base_delay,
        max_jitter=max_jitter,
        retryable=retryable,
    )

    def decorator(f: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        executor = RetryExecutor(config, sleep=sleep, on_retry=on_retry)

        @wraps(f)
        async def wrapper(*args, **kwargs):
            return await executor.run(lambda: f(*args, **kwargs))

        # Expose config for testing/monitoring
        wrapper._retry_config = config
        return wrapper

    # Support both @retry_with_backoff and @retry_with_backoff()
    if func is None:
        return decorator
    return decorator(func)
