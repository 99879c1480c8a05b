"""Per-category circuit breakers, one per AI provider."""

import logging
import threading
import time
from typing import Callable, Dict, Optional

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "default"


class BreakerRegistry:
    """Maps a breaker category (e.g. a provider name) to its own CircuitBreaker."""

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        overrides: Optional[Dict[str, CircuitBreakerConfig]] = None,
    ):
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._overrides = dict(overrides or {})
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get(self, category: str = DEFAULT_CATEGORY) -> CircuitBreaker:
        """Get the breaker for ``category``, creating it on first use."""
        with self._lock:
            breaker = self._breakers.get(category)
            if breaker is None:
                breaker = CircuitBreaker(
                    name=category,
                    config=self._overrides.get(category, self.config),
                    clock=self._clock,
                )
                self._breakers[category] = breaker
            return breaker

    def __contains__(self, category: str) -> bool:
        return category in self._breakers

    def categories(self):
        return sorted(self._breakers)

    def is_open(self, category: str = DEFAULT_CATEGORY) -> bool:
        """Whether ``category`` is short-circuited. Unknown categories are closed."""
        with self._lock:
            breaker = self._breakers.get(category)
        return breaker is not None and breaker.is_open()

    def record_failure(self, category: str = DEFAULT_CATEGORY):
        self.get(category).record_failure()

    def record_success(self, category: str = DEFAULT_CATEGORY):
        self.get(category).record_success()

    def reset(self, category: Optional[str] = None):
        """Reset one breaker, or every known breaker when no category is given."""
        if category is not None:
            self.get(category).reset()
            return
        with self._lock:
            breakers = list(self._breakers.values())
        for breaker in breakers:
            breaker.reset()

    def get_status(self) -> Dict[str, dict]:
        """Status of every breaker created so far."""
        with self._lock:
            breakers = dict(self._breakers)
        return {name: breaker.get_status() for name, breaker in sorted(breakers.items())}
