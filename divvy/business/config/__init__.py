"""Configuration module."""

from divvy.business.config.analysis_config import (
    AnalysisOptions,
    AnalyzerConfig,
    CacheConfig,
    CircuitBreakerConfig,
    ProviderSettings,
    RetryConfig,
    TechnicalConfig,
    validate_ticker,
)

__all__ = [
    "AnalysisOptions",
    "AnalyzerConfig",
    "CacheConfig",
    "CircuitBreakerConfig",
    "ProviderSettings",
    "RetryConfig",
    "TechnicalConfig",
    "validate_ticker",
]
