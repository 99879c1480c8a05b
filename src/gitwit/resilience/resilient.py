"""Composition of the circuit breaker gate with the retry executor."""

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .circuit_breaker import CircuitBreaker
from .retry import RetryConfig, RetryExecutor, Sleep

T = TypeVar("T")


class ResilientCaller:
    """Runs operations as ``breaker.call(retry.run(operation))``.

    The breaker is consulted once per logical call, before the first attempt,
    and sees a single outcome per call no matter how many attempts were made.
    """

    def __init__(
        self,
        breaker: CircuitBreaker,
        retry_config: Optional[RetryConfig] = None,
        sleep: Sleep = asyncio.sleep,
        on_retry: Optional[Callable[[BaseException, int, float], None]] = None,
    ):
        self.breaker = breaker
        self.executor = RetryExecutor(retry_config, sleep=sleep, on_retry=on_retry)

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await self.breaker.call(lambda: self.executor.run(operation))

    def wrap(self, operation: Callable[[], Awaitable[T]]) -> Callable[[], Awaitable[T]]:
        """Return a zero-argument coroutine function with retry and breaker applied."""
        async def wrapped() -> T:
            return await self.call(operation)
        return wrapped


def resilient(
    breaker: CircuitBreaker,
    retry_config: Optional[RetryConfig] = None,
    sleep: Sleep = asyncio.sleep,
) -> Callable:
    """Decorator applying :class:`ResilientCaller` to a coroutine function."""
    caller = ResilientCaller(breaker, retry_config, sleep=sleep)

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await caller.call(lambda: func(*args, **kwargs))
        wrapper._resilient_caller = caller
        return wrapper
    return decorator
