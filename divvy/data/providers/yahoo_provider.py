"""Yahoo Finance data provider implementation."""

import logging
import math
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any

import pandas as pd
import yfinance as yf

from divvy.data.errors import (
    DataQualityError,
    DataSourceError,
    DivvyError,
    ErrorKind,
    InsufficientDataError,
    NetworkError,
    RateLimitError,
    TickerNotFoundError,
    classify_error,
)
from divvy.data.models import DividendEvent, Fundamentals, PricePoint, PriceSeries, Quote
from divvy.data.providers.base import DataProvider

logger = logging.getLogger(__name__)

# Row labels in yfinance statements, newest label first
OPERATING_CASH_FLOW_ROWS = ("Operating Cash Flow", "Total Cash From Operating Activities")
CAPEX_ROWS = ("Capital Expenditure", "Capital Expenditures")
DIVIDENDS_PAID_ROWS = ("Cash Dividends Paid", "Common Stock Dividend Paid", "Dividends Paid")
NET_INCOME_ROWS = ("Net Income", "Net Income Common Stockholders")

PRICE_FIELDS = ("regularMarketPrice", "currentPrice", "previousClose")


def _latest_value(frame: pd.DataFrame | None, labels: tuple[str, ...]) -> float | None:
    """Most recent non-null value of the first matching statement row."""
    if frame is None or frame.empty:
        return None

    for label in labels:
        if label not in frame.index:
            continue
        row = frame.loc[label]
        if isinstance(row, pd.DataFrame):
            row = row.iloc[0]
        # Columns are fiscal period end dates, newest first
        for value in row.sort_index(ascending=False).tolist():
            if value is not None and not pd.isna(value):
                return float(value)
    return None


class YahooProvider(DataProvider):
    """Yahoo Finance data provider.

    Bulk/default provider: no authentication, loose rate limits, and the
    only source of current quotes.
    """

    def __init__(self, rate_limit: float = 0.5) -> None:
        """Initialize Yahoo Finance provider.

        Args:
            rate_limit: Minimum seconds between requests (default 0.5).
        """
        self._rate_limit = rate_limit
        self._last_request_time = 0.0
        self._throttle_lock = threading.Lock()

    @property
    def name(self) -> str:
        """Provider name."""
        return "yahoo"

    @property
    def is_available(self) -> bool:
        """Yahoo Finance is always available (no connection required)."""
        return True

    def _check_rate_limit(self) -> None:
        """Enforce rate limiting between requests."""
        with self._throttle_lock:
            current_time = time.time()
            elapsed = current_time - self._last_request_time

            if elapsed < self._rate_limit:
                sleep_time = self._rate_limit - elapsed
                time.sleep(sleep_time)

            self._last_request_time = time.time()

    def _translate_error(self, error: Exception, operation: str, symbol: str) -> DivvyError:
        """Map a yfinance/requests failure onto the error taxonomy."""
        if isinstance(error, DivvyError):
            return error

        kind = classify_error(error)
        message = f"Yahoo {operation} failed for {symbol}: {error}"
        if kind is ErrorKind.RATE_LIMIT:
            return RateLimitError(message)
        if kind is ErrorKind.NETWORK:
            return NetworkError(message)
        if "not found" in str(error).lower() or "delisted" in str(error).lower():
            return TickerNotFoundError(symbol)
        return DataSourceError(message, source=self.name, retryable=True)

    def get_quote(self, symbol: str) -> Quote:
        """Get current quote from ticker info."""
        self._check_rate_limit()
        symbol = self.normalize_symbol(symbol)

        try:
            info: dict[str, Any] = yf.Ticker(symbol).info or {}
        except Exception as e:
            raise self._translate_error(e, "quote", symbol) from e

        price = next((info[f] for f in PRICE_FIELDS if info.get(f) is not None), None)
        if not info or price is None:
            logger.warning(f"No quote data available for {symbol}")
            raise TickerNotFoundError(symbol)

        try:
            price = float(price)
        except (TypeError, ValueError):
            raise DataQualityError(f"Invalid price for {symbol}: {price!r}", "quote")
        if not math.isfinite(price) or price <= 0:
            raise DataQualityError(f"Invalid price for {symbol}: {price}", "quote")

        return Quote(
            symbol=symbol,
            price=price,
            currency=info.get("currency") or "USD",
            name=info.get("shortName") or info.get("longName") or symbol,
            source=self.name,
        )

    def get_dividend_events(self, symbol: str, years: int) -> list[DividendEvent]:
        """Get dividend events from the ticker's dividend series."""
        self._check_rate_limit()
        symbol = self.normalize_symbol(symbol)

        try:
            dividends = yf.Ticker(symbol).dividends
        except Exception as e:
            raise self._translate_error(e, "dividends", symbol) from e

        if dividends is None or dividends.empty:
            logger.info(f"No dividend history for {symbol}")
            return []

        cutoff = datetime.now(timezone.utc) - timedelta(days=round(years * 365.25))
        events = []
        for timestamp, amount in dividends.items():
            event = DividendEvent.create(pd.Timestamp(timestamp).to_pydatetime(), amount)
            if event.date >= cutoff:
                events.append(event)

        events.sort(key=lambda e: e.date)
        logger.debug(f"Yahoo returned {len(events)} dividend events for {symbol}")
        return events

    def get_fundamentals(self, symbol: str, years: int) -> Fundamentals:
        """Get latest annual cash flow and income figures."""
        self._check_rate_limit()
        symbol = self.normalize_symbol(symbol)

        try:
            ticker = yf.Ticker(symbol)
            cashflow = ticker.cashflow
            income = ticker.income_stmt
            info = ticker.info or {}
        except Exception as e:
            raise self._translate_error(e, "fundamentals", symbol) from e

        fundamentals = Fundamentals.from_values(
            operating_cash_flow=_latest_value(cashflow, OPERATING_CASH_FLOW_ROWS),
            capital_expenditure=_latest_value(cashflow, CAPEX_ROWS),
            cash_dividends_paid=_latest_value(cashflow, DIVIDENDS_PAID_ROWS),
            net_income=_latest_value(income, NET_INCOME_ROWS),
            payout_ratio=info.get("payoutRatio"),
            source=self.name,
        )

        if fundamentals.known_field_count == 0:
            logger.warning(f"No fundamental data for {symbol}")
            raise InsufficientDataError(["fundamentals"])

        return fundamentals

    def get_price_series(self, symbol: str, lookback_years: int) -> PriceSeries:
        """Get daily closes as dated price points."""
        self._check_rate_limit()
        symbol = self.normalize_symbol(symbol)

        try:
            hist = yf.Ticker(symbol).history(period=f"{lookback_years}y", interval="1d")
        except Exception as e:
            raise self._translate_error(e, "price history", symbol) from e

        if hist is None or hist.empty or "Close" not in hist:
            logger.warning(f"No history data for {symbol}")
            raise InsufficientDataError(["price history"])

        points = [
            PricePoint(date=pd.Timestamp(timestamp).date(), close=float(close))
            for timestamp, close in hist["Close"].items()
            if not pd.isna(close)
        ]
        return PriceSeries.from_points(symbol, points, source=self.name)
