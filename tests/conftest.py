"""
Shared pytest fixtures.

Provides an in-memory stand-in for the Supabase query builder and fake
market data providers, so tests never touch the network.
"""

import itertools
import time
from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any

import pytest

from divvy.data.cache import SupabaseClient
from divvy.data.models import DividendEvent, Fundamentals, PricePoint, PriceSeries, Quote
from divvy.data.providers.base import DataProvider


# ============================================================================
# In-memory Supabase
# ============================================================================


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value


class FakeQuery:
    """Chainable query over one in-memory table."""

    def __init__(self, backend: "FakeSupabaseBackend", table: str) -> None:
        self._backend = backend
        self._table = table
        self._filters: list[tuple[str, str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._insert: dict[str, Any] | None = None

    def select(self, columns: str = "*") -> "FakeQuery":
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("eq", column, value))
        return self

    def gte(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(("gte", column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def insert(self, row: dict[str, Any]) -> "FakeQuery":
        self._insert = row
        return self

    def execute(self) -> SimpleNamespace:
        self._backend.executed.append(self._table)
        if self._backend.fail_with is not None:
            raise self._backend.fail_with

        rows = self._backend.tables.setdefault(self._table, [])
        if self._insert is not None:
            row = {"id": next(self._backend.ids), **self._insert}
            rows.append(row)
            return SimpleNamespace(data=[row])

        selected = [row for row in rows if self._matches(row)]
        if self._order:
            column, desc = self._order
            selected.sort(key=lambda r: _comparable(r[column]), reverse=desc)
        if self._limit is not None:
            selected = selected[: self._limit]
        return SimpleNamespace(data=selected)

    def _matches(self, row: dict[str, Any]) -> bool:
        for op, column, value in self._filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "gte" and _comparable(row.get(column)) < _comparable(value):
                return False
        return True


class FakeSupabaseBackend:
    """Minimal stand-in for a supabase Client."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.executed: list[str] = []
        self.fail_with: Exception | None = None
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def supabase_backend():
    """In-memory Supabase tables."""
    return FakeSupabaseBackend()


@pytest.fixture
def supabase_client(supabase_backend):
    """SupabaseClient wrapping the in-memory backend."""
    return SupabaseClient(client=supabase_backend)


# ============================================================================
# Market data
# ============================================================================

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def quarterly_events(first_year: int, last_year: int, annual: dict[int, float]) -> list[DividendEvent]:
    """Four equal payments per year summing to annual[year]."""
    events = []
    for year in range(first_year, last_year + 1):
        for month in (3, 6, 9, 12):
            when = datetime(year, month, 15, tzinfo=timezone.utc)
            if when <= NOW:
                events.append(DividendEvent.create(when, annual[year] / 4))
    return events


def rising_prices(count: int, start: float = 50.0, step: float = 0.1) -> list[float]:
    """Gently rising closes with a small zig-zag."""
    return [start + i * step + (0.3 if i % 2 else -0.3) for i in range(count)]


def price_series(symbol: str, closes: list[float], source: str = "fake") -> PriceSeries:
    start = date(2022, 1, 1)
    points = [PricePoint(date=start + timedelta(days=i), close=c) for i, c in enumerate(closes)]
    return PriceSeries.from_points(symbol, points, source=source)


class SteppingClock:
    """Stand-in for the time module: sleeping advances the clock.

    Each sleep also yields briefly so unsynchronized callers interleave.
    """

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        time.sleep(0.005)
        self.now += seconds


class FakeProvider(DataProvider):
    """Scriptable provider.

    Each data attribute is either a value, an exception to raise, or a list
    of those consumed one call at a time.
    """

    def __init__(
        self,
        name: str = "yahoo",
        available: bool = True,
        quote: Any = None,
        dividends: Any = None,
        fundamentals: Any = None,
        prices: Any = None,
        data_types: frozenset | None = None,
    ) -> None:
        self._name = name
        self._available = available
        self._data_types = data_types
        self.responses = {
            "quote": quote,
            "dividends": dividends,
            "fundamentals": fundamentals,
            "prices": prices,
        }
        self.calls: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_available(self) -> bool:
        return self._available

    @property
    def supported_data_types(self):
        return self._data_types or super().supported_data_types

    def _respond(self, key: str) -> Any:
        self.calls.append(key)
        response = self.responses[key]
        if isinstance(response, list) and response and isinstance(response[0], (Exception, _Script)):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, _Script):
            response = response.value
        if isinstance(response, Exception):
            raise response
        return response

    def get_quote(self, symbol: str) -> Quote:
        return self._respond("quote")

    def get_dividend_events(self, symbol: str, years: int) -> list[DividendEvent]:
        return self._respond("dividends")

    def get_fundamentals(self, symbol: str, years: int) -> Fundamentals:
        return self._respond("fundamentals")

    def get_price_series(self, symbol: str, lookback_years: int) -> PriceSeries:
        return self._respond("prices")


class _Script:
    """Wraps a successful response inside a scripted sequence."""

    def __init__(self, value: Any) -> None:
        self.value = value


def script(*responses: Any) -> list[Any]:
    """Sequence of responses: exceptions are raised, other values returned."""
    return [r if isinstance(r, Exception) else _Script(r) for r in responses]


@pytest.fixture
def ko_quote():
    return Quote(symbol="KO", price=60.0, currency="USD", name="Coca-Cola", source="yahoo")


@pytest.fixture
def ko_events():
    annual = {2015 + i: 1.00 * 1.05**i for i in range(10)}
    return quarterly_events(2015, 2024, annual)


@pytest.fixture
def ko_fundamentals():
    return Fundamentals.from_values(
        operating_cash_flow=12_000,
        capital_expenditure=-2_000,
        cash_dividends_paid=-5_000,
        net_income=10_000,
        payout_ratio=0.5,
        source="yahoo",
    )
