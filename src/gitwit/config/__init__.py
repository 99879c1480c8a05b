"""Configuration module for GitWit."""

from gitwit.config.parser import ConfigurationError, YAMLParser
from gitwit.config.schema import (
    BreakerPolicyConfig,
    ProviderConfig,
    ProviderName,
    ResilienceConfig,
    RetryPolicyConfig,
)

__all__ = [
    "BreakerPolicyConfig",
    "ConfigurationError",
    "ProviderConfig",
    "ProviderName",
    "ResilienceConfig",
    "RetryPolicyConfig",
    "YAMLParser",
]
