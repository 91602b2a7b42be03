"""Unified data provider with routing, resilience and fallback.

Every provider call runs through its circuit breaker and its retry policy.
Any failure falls through to the next routed provider; when all of them fail
the most specific error is raised.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Generic, TypeVar

from divvy.data.errors import DataSourceError, ErrorKind, most_specific_error
from divvy.data.models import DataType, DividendEvent, Fundamentals, PriceSeries, ProviderChoice, Quote
from divvy.data.providers.alpha_vantage_provider import AlphaVantageProvider
from divvy.data.providers.base import DataProvider, ProviderHealth
from divvy.data.providers.circuit_breaker import CircuitBreakerRegistry
from divvy.data.providers.retry import RetryPolicy, with_retry
from divvy.data.providers.routing import RoutingConfig
from divvy.data.providers.yahoo_provider import YahooProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Rate limits on the precision API last for the day, so they fall back at once
PRECISION_RETRY_POLICY = RetryPolicy(
    max_attempts=2,
    base_delay=2.0,
    max_delay=10.0,
    retryable_kinds=frozenset({ErrorKind.NETWORK, ErrorKind.DATA_SOURCE}),
)

DEFAULT_RETRY_POLICIES: dict[str, RetryPolicy] = {
    "yahoo": RetryPolicy(),
    "alpha_vantage": PRECISION_RETRY_POLICY,
}


@dataclass(frozen=True)
class Acquired(Generic[T]):
    """A fetched value and the provider that produced it.

    Attributes:
        value: The data.
        source: Provider name.
        fallback_errors: "provider: error" for each provider that failed first.
    """

    value: T
    source: str
    fallback_errors: tuple[str, ...] = ()

    @property
    def used_fallback(self) -> bool:
        return bool(self.fallback_errors)


class UnifiedDataProvider:
    """Unified data provider with routing and fallback support.

    Routing Strategy:
    - Quotes → Yahoo
    - default → Yahoo
    - precision / auto → Alpha Vantage → Yahoo (auto skips Alpha Vantage
      when no API key is configured)

    Usage:
        provider = UnifiedDataProvider()
        quote = provider.get_quote("KO").value
        events = provider.get_dividend_events("KO", 15, ProviderChoice.PRECISION)
    """

    def __init__(
        self,
        routing_config: RoutingConfig | str | Path | None = None,
        yahoo_provider: DataProvider | None = None,
        alpha_vantage_provider: DataProvider | None = None,
        breakers: CircuitBreakerRegistry | None = None,
        retry_policies: dict[str, RetryPolicy] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize unified provider.

        Args:
            routing_config: RoutingConfig instance, path to a YAML file, or
                None for the default rules.
            yahoo_provider: Bulk provider (default YahooProvider()).
            alpha_vantage_provider: Precision provider (default
                AlphaVantageProvider() reading the API key from env).
            breakers: Shared breaker registry. Pass the same registry to
                every UnifiedDataProvider that should share breaker state.
            retry_policies: Retry policy per provider name.
            sleep: Sleep function used between retries.
        """
        if isinstance(routing_config, RoutingConfig):
            self._routing = routing_config
        else:
            self._routing = RoutingConfig(routing_config)

        yahoo = yahoo_provider or YahooProvider()
        alpha_vantage = alpha_vantage_provider or AlphaVantageProvider()
        self._providers: dict[str, DataProvider] = {
            yahoo.name: yahoo,
            alpha_vantage.name: alpha_vantage,
        }

        self._breakers = breakers or CircuitBreakerRegistry()
        self._retry_policies = {**DEFAULT_RETRY_POLICIES, **(retry_policies or {})}
        self._sleep = sleep

    @property
    def breakers(self) -> CircuitBreakerRegistry:
        return self._breakers

    def _get_provider(self, name: str) -> DataProvider | None:
        return self._providers.get(name)

    # =========================================================================
    # Routing Logic
    # =========================================================================

    def _route(self, data_type: DataType, choice: ProviderChoice) -> list[DataProvider]:
        """Available providers for a data type, in priority order."""
        provider_names = self._routing.select_providers(data_type, choice)

        providers = []
        for name in provider_names:
            provider = self._get_provider(name)
            if provider is None or not provider.is_available:
                logger.debug(f"Provider {name} not available for {data_type.value}")
                continue
            if data_type not in provider.supported_data_types:
                continue
            providers.append(provider)

        if not providers:
            logger.warning(
                f"No providers available for {data_type.value}/{choice.value}, "
                f"requested: {provider_names}"
            )

        return providers

    def _execute_with_fallback(
        self,
        data_type: DataType,
        choice: ProviderChoice,
        symbol: str,
        fetch: Callable[[DataProvider], T],
    ) -> Acquired[T]:
        """Run fetch on routed providers until one succeeds.

        Raises:
            DivvyError: The most specific error when every provider failed.
        """
        providers = self._route(data_type, choice)
        if not providers:
            raise DataSourceError(
                f"No providers available for {data_type.value}", source="routing", retryable=False
            )

        errors: list[Exception] = []
        failures: list[str] = []
        for i, provider in enumerate(providers):
            breaker = self._breakers.get(provider.name, data_type.value)
            policy = self._retry_policies.get(provider.name, RetryPolicy())
            description = f"{provider.name} {data_type.value} for {symbol}"

            try:
                value = breaker.call(
                    lambda: with_retry(
                        lambda: fetch(provider), policy, sleep=self._sleep, description=description
                    )
                )
            except Exception as e:
                errors.append(e)
                failures.append(f"{provider.name}: {e}")
                remaining = len(providers) - i - 1
                if remaining > 0:
                    logger.warning(
                        f"Provider {provider.name} failed for {data_type.value} of {symbol}: {e}, "
                        f"trying fallback ({remaining} remaining)..."
                    )
                else:
                    logger.warning(
                        f"Provider {provider.name} failed for {data_type.value} of {symbol}: {e}, "
                        f"no more fallbacks available"
                    )
                continue

            if i > 0:
                logger.info(f"Successfully routed {data_type.value} to {provider.name} (fallback)")
            else:
                logger.debug(f"Routed {data_type.value} for {symbol} to {provider.name}")
            return Acquired(value=value, source=provider.name, fallback_errors=tuple(failures))

        logger.error(f"All providers failed for {data_type.value} of {symbol}")
        raise most_specific_error(errors)

    # =========================================================================
    # Data Methods
    # =========================================================================

    def get_quote(
        self, symbol: str, choice: ProviderChoice = ProviderChoice.DEFAULT
    ) -> Acquired[Quote]:
        """Get current quote."""
        return self._execute_with_fallback(
            DataType.QUOTE, choice, symbol, lambda p: p.get_quote(symbol)
        )

    def get_dividend_events(
        self, symbol: str, years: int, choice: ProviderChoice = ProviderChoice.DEFAULT
    ) -> Acquired[list[DividendEvent]]:
        """Get dividend events for the last `years` years."""
        return self._execute_with_fallback(
            DataType.DIVIDENDS, choice, symbol, lambda p: p.get_dividend_events(symbol, years)
        )

    def get_fundamentals(
        self, symbol: str, years: int, choice: ProviderChoice = ProviderChoice.DEFAULT
    ) -> Acquired[Fundamentals]:
        """Get latest annual fundamentals."""
        return self._execute_with_fallback(
            DataType.FUNDAMENTALS, choice, symbol, lambda p: p.get_fundamentals(symbol, years)
        )

    def get_price_series(
        self, symbol: str, lookback_years: int, choice: ProviderChoice = ProviderChoice.DEFAULT
    ) -> Acquired[PriceSeries]:
        """Get daily close prices."""
        return self._execute_with_fallback(
            DataType.PRICE_SERIES,
            choice,
            symbol,
            lambda p: p.get_price_series(symbol, lookback_years),
        )

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def get_routing_info(self, data_type: DataType, choice: ProviderChoice) -> dict[str, Any]:
        """Get routing information for debugging."""
        provider_names = self._routing.select_providers(data_type, choice)
        return {
            "data_type": data_type.value,
            "provider_choice": choice.value,
            "configured_providers": provider_names,
            "available_providers": [p.name for p in self._route(data_type, choice)],
            "open_breakers": self._breakers.open_breakers(),
        }

    def health_check(self, symbol: str = "AAPL") -> list[ProviderHealth]:
        """Probe every configured provider."""
        return [
            provider.health_check(symbol)
            for provider in self._providers.values()
            if provider.is_available
        ]
