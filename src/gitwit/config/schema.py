"""Configuration schema for the GitWit resilience layer."""

import time
from enum import Enum
from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from gitwit.resilience.circuit_breaker import CircuitBreakerConfig
from gitwit.resilience.registry import BreakerRegistry
from gitwit.resilience.retry import RetryConfig


class ProviderName(str, Enum):
    """Supported AI providers, in default fallback order."""

    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class RetryPolicyConfig(BaseModel):
    """Retry policy applied to every provider call."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0)
    max_jitter: float = Field(default=1.0, ge=0.0)

    def to_retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_jitter=self.max_jitter,
        )


class BreakerPolicyConfig(BaseModel):
    """Circuit breaker policy."""

    failure_threshold: int = Field(default=3, ge=1)
    recovery_timeout: float = Field(default=60.0, ge=0.0)

    def to_breaker_config(self) -> CircuitBreakerConfig:
        return CircuitBreakerConfig(
            failure_threshold=self.failure_threshold,
            recovery_timeout=self.recovery_timeout,
        )


class ProviderConfig(BaseModel):
    """Configuration for one AI provider."""

    name: ProviderName
    model: Optional[str] = None
    api_key: Optional[str] = None
    enabled: Optional[bool] = None
    breaker: Optional[BreakerPolicyConfig] = None

    @model_validator(mode="after")
    def default_enabled(self):
        """A provider without an explicit flag is enabled when it has an API key."""
        if self.enabled is None:
            self.enabled = bool(self.api_key)
        return self


class ResilienceConfig(BaseModel):
    """Complete resilience configuration."""

    retry: RetryPolicyConfig = Field(default_factory=RetryPolicyConfig)
    breaker: BreakerPolicyConfig = Field(default_factory=BreakerPolicyConfig)
    providers: List[ProviderConfig] = Field(default_factory=list)

    @field_validator("providers")
    @classmethod
    def validate_unique_provider_names(cls, providers: List[ProviderConfig]) -> List[ProviderConfig]:
        """Ensure each provider is listed once."""
        names = [p.name for p in providers]
        if len(names) != len(set(names)):
            raise ValueError("Provider names must be unique")
        return providers

    def enabled_providers(self) -> List[ProviderConfig]:
        """Enabled providers in fallback order."""
        return [p for p in self.providers if p.enabled]

    def build_registry(self, clock: Callable[[], float] = time.monotonic) -> BreakerRegistry:
        """Create a breaker registry honouring per-provider overrides."""
        overrides: Dict[str, CircuitBreakerConfig] = {
            p.name.value: p.breaker.to_breaker_config()
            for p in self.providers
            if p.breaker is not None
        }
        return BreakerRegistry(
            self.breaker.to_breaker_config(), clock=clock, overrides=overrides
        )
