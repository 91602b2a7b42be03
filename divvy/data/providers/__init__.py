"""Data providers module."""

from divvy.data.providers.alpha_vantage_provider import AlphaVantageProvider
from divvy.data.providers.base import DataProvider, PrecisionDataProvider, ProviderHealth
from divvy.data.providers.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerRegistry,
    CircuitBreakerState,
)
from divvy.data.providers.retry import (
    RetryPolicy,
    calc_retry_delay,
    with_retry,
)
from divvy.data.providers.routing import RoutingConfig, RoutingRule
from divvy.data.providers.unified_provider import Acquired, UnifiedDataProvider
from divvy.data.providers.yahoo_provider import YahooProvider

__all__ = [
    "DataProvider",
    "PrecisionDataProvider",
    "ProviderHealth",
    "YahooProvider",
    "AlphaVantageProvider",
    "RetryPolicy",
    "calc_retry_delay",
    "with_retry",
    "CircuitBreaker",
    "CircuitBreakerState",
    "CircuitBreakerRegistry",
    "RoutingConfig",
    "RoutingRule",
    "Acquired",
    "UnifiedDataProvider",
]
