"""Abstract base classes for market data providers.

Providers raise DivvyError subclasses on failure; they never return None for
a failed request. Retry, circuit breaking and fallback are applied above them
by UnifiedDataProvider.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from divvy.data.errors import DataSourceError
from divvy.data.models import DataType, DividendEvent, Fundamentals, PriceSeries, Quote


@dataclass(frozen=True)
class ProviderHealth:
    """Result of a provider health check."""

    provider: str
    available: bool
    latency: float  # seconds
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "available": self.available,
            "latency": self.latency,
            "error": self.error,
        }


class DataProvider(ABC):
    """Abstract base class for market data providers.

    All data provider implementations must inherit from this class
    and implement the required methods.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'yahoo', 'alpha_vantage')."""
        pass

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and usable."""
        pass

    @property
    def supported_data_types(self) -> frozenset[DataType]:
        """Data types this provider can serve."""
        return frozenset(DataType)

    @abstractmethod
    def get_quote(self, symbol: str) -> Quote:
        """Get current quote.

        Args:
            symbol: Stock symbol (e.g., 'KO').

        Returns:
            Quote instance.

        Raises:
            TickerNotFoundError: Symbol unknown to the provider.
            DataQualityError: Price failed sanity checks.
        """
        pass

    @abstractmethod
    def get_dividend_events(self, symbol: str, years: int) -> list[DividendEvent]:
        """Get dividend events for the last `years` years.

        Returns:
            Events sorted by date ascending (may be empty for non-payers).
        """
        pass

    @abstractmethod
    def get_fundamentals(self, symbol: str, years: int) -> Fundamentals:
        """Get latest annual fundamentals.

        Args:
            symbol: Stock symbol.
            years: History depth hint; only the latest fiscal year is used.
        """
        pass

    @abstractmethod
    def get_price_series(self, symbol: str, lookback_years: int) -> PriceSeries:
        """Get daily close prices.

        Raises:
            InsufficientDataError: No price history.
        """
        pass

    def health_check(self, symbol: str = "AAPL") -> ProviderHealth:
        """Probe the provider with a cheap request."""
        start = time.monotonic()
        try:
            self._probe(symbol)
        except Exception as e:
            return ProviderHealth(
                provider=self.name,
                available=False,
                latency=time.monotonic() - start,
                error=str(e),
            )
        return ProviderHealth(provider=self.name, available=True, latency=time.monotonic() - start)

    def _probe(self, symbol: str) -> None:
        self.get_quote(symbol)

    def normalize_symbol(self, symbol: str) -> str:
        """Normalize symbol format for this provider.

        Override in subclass if provider uses different format.
        """
        return symbol.strip().upper()


class PrecisionDataProvider(DataProvider):
    """Rate-limited provider with higher quality raw endpoints.

    Subclasses implement the raw endpoints; the DataProvider methods are
    derived from them. Quotes are not offered.
    """

    @property
    def supported_data_types(self) -> frozenset[DataType]:
        return frozenset({DataType.DIVIDENDS, DataType.FUNDAMENTALS, DataType.PRICE_SERIES})

    @abstractmethod
    def get_overview(self, symbol: str) -> dict[str, Any]:
        """Company overview (name, currency, payout ratio, ...)."""
        pass

    @abstractmethod
    def get_adjusted_daily_series(self, symbol: str) -> dict[str, dict[str, Any]]:
        """Adjusted daily series keyed by 'YYYY-MM-DD'."""
        pass

    @abstractmethod
    def get_income_statement(self, symbol: str) -> dict[str, Any]:
        """Income statement with annualReports."""
        pass

    @abstractmethod
    def get_cash_flow(self, symbol: str) -> dict[str, Any]:
        """Cash flow statement with annualReports."""
        pass

    def get_quote(self, symbol: str) -> Quote:
        raise DataSourceError(
            f"{self.name} does not provide quotes", source=self.name, retryable=False
        )

    def _probe(self, symbol: str) -> None:
        self.get_overview(symbol)
