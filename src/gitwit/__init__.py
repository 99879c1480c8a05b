"""GitWit - resilient AI calls for code review tooling."""

__version__ = "0.1.0"

from gitwit.resilience import (
    BreakerRegistry,
    CircuitBreaker,
    CircuitOpenError,
    ResilientCaller,
    RetryExecutor,
)

__all__ = [
    "BreakerRegistry",
    "CircuitBreaker",
    "CircuitOpenError",
    "ResilientCaller",
    "RetryExecutor",
    "__version__",
]
