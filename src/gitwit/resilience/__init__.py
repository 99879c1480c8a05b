"""Resilience patterns for outbound AI requests."""

from .circuit_breaker import (
    BreakerState,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    circuit_breaker,
)
from .errors import (
    CircuitOpenError,
    NoProviderAvailableError,
    ServiceError,
    get_status,
    is_retryable,
)
from .fallback import FallbackResult, Provider, generate_with_fallback
from .registry import DEFAULT_CATEGORY, BreakerRegistry
from .resilient import ResilientCaller, resilient
from .retry import RetryConfig, RetryExecutor, calculate_backoff_delay, retry_with_backoff

__all__ = [
    "BreakerRegistry",
    "BreakerState",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitOpenError",
    "CircuitState",
    "DEFAULT_CATEGORY",
    "FallbackResult",
    "NoProviderAvailableError",
    "Provider",
    "ResilientCaller",
    "RetryConfig",
    "RetryExecutor",
    "ServiceError",
    "calculate_backoff_delay",
    "circuit_breaker",
    "generate_with_fallback",
    "get_status",
    "is_retryable",
    "resilient",
    "retry_with_backoff",
]
