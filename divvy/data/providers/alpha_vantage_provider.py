"""Alpha Vantage data provider.

Precision source for dividends, prices and annual statements.
Free tier: 25 requests per day, enforced locally so the quota is not burned
on requests the API would reject anyway.

API docs: https://www.alphavantage.co/documentation/
"""

import logging
import os
import threading
import time
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from typing import Any

import requests

from divvy.data.errors import (
    DataSourceError,
    DivvyError,
    InsufficientDataError,
    NetworkError,
    RateLimitError,
    TickerNotFoundError,
)
from divvy.data.models import DividendEvent, Fundamentals, PriceSeries
from divvy.data.models.fundamental import to_finite
from divvy.data.providers.base import PrecisionDataProvider

logger = logging.getLogger(__name__)

DAILY_SERIES_KEY = "Time Series (Daily)"
CLOSE_FIELD = "4. close"
DIVIDEND_FIELD = "7. dividend amount"

# Seconds suggested before retrying after a throttling notice
RATE_LIMIT_RETRY_AFTER = 60.0


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AlphaVantageProvider(PrecisionDataProvider):
    """Alpha Vantage precision data provider.

    Usage:
        provider = AlphaVantageProvider(api_key="your_key")
        events = provider.get_dividend_events("KO", years=15)
    """

    BASE_URL = "https://www.alphavantage.co/query"

    def __init__(
        self,
        api_key: str | None = None,
        daily_ceiling: int = 25,
        rate_limit: float = 1.0,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize Alpha Vantage provider.

        Args:
            api_key: API key. If not provided, reads from the
                ALPHA_VANTAGE_API_KEY environment variable.
            daily_ceiling: Maximum requests per UTC day.
            rate_limit: Minimum seconds between requests.
            timeout: HTTP timeout in seconds.
            session: Optional requests session (shared connection pool).
            clock: Returns the current aware UTC time.
        """
        self._api_key = api_key or os.environ.get("ALPHA_VANTAGE_API_KEY")
        self._daily_ceiling = daily_ceiling
        self._rate_limit = rate_limit
        self._timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock
        self._last_request_time = 0.0
        self._throttle_lock = threading.Lock()

        self._lock = threading.Lock()
        self._quota_day: date | None = None
        self._requests_today = 0
        self._daily_series: dict[str, dict[str, dict[str, Any]]] = {}

        if not self._api_key:
            logger.info("Alpha Vantage API key not configured, provider disabled")

    @property
    def name(self) -> str:
        """Provider name."""
        return "alpha_vantage"

    @property
    def is_available(self) -> bool:
        """Check if provider is available (API key configured)."""
        return bool(self._api_key)

    @property
    def remaining_quota(self) -> int:
        """Requests left today under the local ceiling."""
        with self._lock:
            self._roll_quota_day()
            return max(0, self._daily_ceiling - self._requests_today)

    def _roll_quota_day(self) -> None:
        """Reset the quota and drop memoized series when the UTC day changes.

        Caller must hold self._lock.
        """
        today = self._clock().date()
        if self._quota_day != today:
            self._quota_day = today
            self._requests_today = 0
            self._daily_series.clear()

    def _reserve_request(self) -> None:
        """Count one request against the daily ceiling."""
        with self._lock:
            self._roll_quota_day()
            if self._requests_today >= self._daily_ceiling:
                raise RateLimitError(
                    f"Alpha Vantage daily ceiling of {self._daily_ceiling} requests reached"
                )
            self._requests_today += 1

    def _check_rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        with self._throttle_lock:
            current_time = time.time()
            elapsed = current_time - self._last_request_time

            if elapsed < self._rate_limit:
                sleep_time = self._rate_limit - elapsed
                time.sleep(sleep_time)

            self._last_request_time = time.time()

    def _make_request(self, function: str, symbol: str, **params: Any) -> dict[str, Any]:
        """Make API request to Alpha Vantage.

        Args:
            function: API function name (e.g. 'OVERVIEW').
            symbol: Stock symbol.
            **params: Extra query parameters.

        Returns:
            Decoded JSON payload.

        Raises:
            TickerNotFoundError: API returned an 'Error Message'.
            RateLimitError: API throttled the request (HTTP 429 or a 'Note').
            NetworkError: Transport failure or 5xx.
            DataSourceError: Any other unexpected response.
        """
        if not self._api_key:
            raise DataSourceError(
                "Alpha Vantage API key not configured", source=self.name, retryable=False
            )

        self._reserve_request()
        self._check_rate_limit()

        query = {"function": function, "symbol": symbol, "apikey": self._api_key, **params}

        try:
            response = self._session.get(self.BASE_URL, params=query, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 429:
                raise RateLimitError(
                    f"Alpha Vantage rate limit exceeded for {function}",
                    retry_after=RATE_LIMIT_RETRY_AFTER,
                ) from e
            if status is not None and status >= 500:
                raise NetworkError(f"Alpha Vantage HTTP {status} for {function}", status) from e
            raise DataSourceError(
                f"Alpha Vantage HTTP error for {function}: {e}", source=self.name, retryable=False
            ) from e
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise NetworkError(f"Network error accessing Alpha Vantage for {function}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Alpha Vantage request failed for {function}: {e}") from e
        except ValueError as e:
            raise DataSourceError(
                f"Alpha Vantage response parse error for {function}: {e}", source=self.name
            ) from e

        if not isinstance(payload, dict):
            raise DataSourceError(
                f"Unexpected Alpha Vantage payload for {function}", source=self.name
            )
        if payload.get("Error Message"):
            raise TickerNotFoundError(symbol)
        if payload.get("Note") or payload.get("Information"):
            raise RateLimitError(
                "Alpha Vantage API rate limit exceeded", retry_after=RATE_LIMIT_RETRY_AFTER
            )

        return payload

    # =========================================================================
    # Raw endpoints
    # =========================================================================

    def get_overview(self, symbol: str) -> dict[str, Any]:
        """Company overview."""
        symbol = self.normalize_symbol(symbol)
        payload = self._make_request("OVERVIEW", symbol)
        if not payload.get("Symbol"):
            raise DataSourceError(
                f"Invalid overview response from Alpha Vantage for {symbol}",
                source=self.name,
                retryable=False,
            )
        return payload

    def get_adjusted_daily_series(self, symbol: str) -> dict[str, dict[str, Any]]:
        """Full adjusted daily series, fetched once per symbol per UTC day."""
        symbol = self.normalize_symbol(symbol)
        with self._lock:
            self._roll_quota_day()
            cached = self._daily_series.get(symbol)
        if cached is not None:
            logger.debug(f"Reusing Alpha Vantage daily series for {symbol}")
            return cached

        payload = self._make_request("TIME_SERIES_DAILY_ADJUSTED", symbol, outputsize="full")
        series = payload.get(DAILY_SERIES_KEY)
        if not series:
            raise DataSourceError(
                f"No time series data available for {symbol}", source=self.name, retryable=False
            )

        with self._lock:
            self._daily_series[symbol] = series
        return series

    def get_income_statement(self, symbol: str) -> dict[str, Any]:
        """Income statement."""
        symbol = self.normalize_symbol(symbol)
        payload = self._make_request("INCOME_STATEMENT", symbol)
        if not payload.get("annualReports"):
            raise DataSourceError(
                f"No income statement data available for {symbol}",
                source=self.name,
                retryable=False,
            )
        return payload

    def get_cash_flow(self, symbol: str) -> dict[str, Any]:
        """Cash flow statement."""
        symbol = self.normalize_symbol(symbol)
        payload = self._make_request("CASH_FLOW", symbol)
        if not payload.get("annualReports"):
            raise DataSourceError(
                f"No cash flow data available for {symbol}", source=self.name, retryable=False
            )
        return payload

    # =========================================================================
    # Derived data
    # =========================================================================

    def get_dividend_events(self, symbol: str, years: int) -> list[DividendEvent]:
        """Dividend events from the adjusted daily series."""
        symbol = self.normalize_symbol(symbol)
        series = self.get_adjusted_daily_series(symbol)

        cutoff = self._clock() - timedelta(days=round(years * 365.25))
        events = []
        for day, values in series.items():
            amount = to_finite(values.get(DIVIDEND_FIELD))
            if not amount:
                continue
            event = DividendEvent.create(day, amount)
            if event.date >= cutoff:
                events.append(event)

        events.sort(key=lambda e: e.date)
        logger.debug(f"Alpha Vantage returned {len(events)} dividend events for {symbol}")
        return events

    def get_fundamentals(self, symbol: str, years: int) -> Fundamentals:
        """Latest annual cash flow and income figures plus the overview payout ratio."""
        symbol = self.normalize_symbol(symbol)

        cash_flow = _latest_report(self.get_cash_flow(symbol))
        income = _latest_report(self.get_income_statement(symbol))

        try:
            payout_ratio = self.get_overview(symbol).get("PayoutRatio")
        except DivvyError as e:
            # Ratio is derivable from dividends and net income
            logger.warning(f"Alpha Vantage overview unavailable for {symbol}: {e}")
            payout_ratio = None

        dividends_paid = _report_value(cash_flow, "dividendPayout")
        if dividends_paid is None:
            dividends_paid = _report_value(cash_flow, "dividendPayoutCommonStock")

        fundamentals = Fundamentals.from_values(
            operating_cash_flow=_report_value(cash_flow, "operatingCashflow"),
            capital_expenditure=_report_value(cash_flow, "capitalExpenditures"),
            cash_dividends_paid=dividends_paid,
            net_income=_report_value(income, "netIncome"),
            payout_ratio=payout_ratio,
            source=self.name,
        )

        if fundamentals.known_field_count == 0:
            raise InsufficientDataError(["fundamentals"])
        return fundamentals

    def get_price_series(self, symbol: str, lookback_years: int) -> PriceSeries:
        """Daily closes as a date-keyed series."""
        symbol = self.normalize_symbol(symbol)
        series = self.get_adjusted_daily_series(symbol)

        cutoff = (self._clock() - timedelta(days=round(lookback_years * 365.25))).date()
        daily = {
            day: values.get(CLOSE_FIELD)
            for day, values in series.items()
            if date.fromisoformat(day[:10]) >= cutoff
        }
        if not daily:
            raise InsufficientDataError(["price history"])

        return PriceSeries.from_daily_series(symbol, daily, source=self.name)


def _latest_report(statement: dict[str, Any]) -> dict[str, Any]:
    reports = statement.get("annualReports") or []
    if not reports:
        return {}
    return max(reports, key=lambda r: r.get("fiscalDateEnding", ""))


def _report_value(report: dict[str, Any], key: str) -> float | None:
    # Alpha Vantage reports missing values as the string "None"
    value = report.get(key)
    if value in (None, "None", ""):
        return None
    return to_finite(value)
