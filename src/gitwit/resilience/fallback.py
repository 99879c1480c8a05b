"""Ordered fallback across AI providers, each behind its own breaker."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, TypeVar

from .errors import NoProviderAvailableError
from .registry import BreakerRegistry
from .retry import RetryConfig, RetryExecutor, Sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Provider:
    """An AI provider able to serve one request."""
    name: str
    operation: Callable[[], Awaitable[Any]]
    enabled: bool = True


@dataclass
class FallbackResult(Generic[T]):
    result: T
    provider: str


async def generate_with_fallback(
    providers: Sequence[Provider],
    registry: BreakerRegistry,
    retry_config: Optional[RetryConfig] = None,
    sleep: Sleep = asyncio.sleep,
) -> FallbackResult:
    """Try each provider in order until one succeeds.

    Disabled providers and providers whose breaker is open are skipped.
    Each attempted provider runs through the retry executor and its breaker
    records exactly one outcome.

    Raises:
        The last provider error when every attempted provider failed.
        NoProviderAvailableError: when no provider could be attempted.
    """
    executor = RetryExecutor(retry_config, sleep=sleep)
    last_error: Optional[BaseException] = None

    for provider in providers:
        if not provider.enabled or registry.is_open(provider.name):
            logger.info(f"{provider.name} is disabled or circuit breaker is open, skipping...")
            continue

        logger.info(f"Trying {provider.name}...")
        try:
            result = await executor.run(provider.operation)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{provider.name} failed: {e}")
            registry.record_failure(provider.name)
            last_error = e
            continue

        registry.record_success(provider.name)
        logger.info(f"Successfully generated response using {provider.name}")
        return FallbackResult(result=result, provider=provider.name)

    if last_error is not None:
        raise last_error
    raise NoProviderAvailableError("All AI services are unavailable")
