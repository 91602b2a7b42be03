"""Price series input models for technical indicator calculations.

Providers deliver close prices in one of two shapes. The shape is tagged when
the response is received so the indicator math only ever sees an ascending
list of closes.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class PriceSeriesFormat(Enum):
    """Discriminant for PriceSeries payloads."""

    DAILY_SERIES = "daily_series"  # {"YYYY-MM-DD": close} keyed by date
    PRICE_POINTS = "price_points"  # [PricePoint(date, close), ...]


@dataclass(frozen=True)
class PricePoint:
    """One dated close price."""

    date: date
    close: float


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


@dataclass(frozen=True)
class PriceSeries:
    """Close-price history for one symbol.

    Attributes:
        symbol: Stock symbol.
        format: Which payload field is populated.
        daily: Date-keyed closes (DAILY_SERIES).
        points: Dated close list (PRICE_POINTS).
        source: Data source identifier.
    """

    symbol: str
    format: PriceSeriesFormat
    daily: dict[str, Any] = field(default_factory=dict)
    points: list[PricePoint] = field(default_factory=list)
    source: str = "unknown"

    @classmethod
    def from_daily_series(
        cls, symbol: str, daily: dict[str, Any], source: str = "unknown"
    ) -> "PriceSeries":
        """Wrap a date-keyed daily series."""
        return cls(
            symbol=symbol,
            format=PriceSeriesFormat.DAILY_SERIES,
            daily=dict(daily),
            source=source,
        )

    @classmethod
    def from_points(
        cls, symbol: str, points: list[PricePoint], source: str = "unknown"
    ) -> "PriceSeries":
        """Wrap a list of dated closes."""
        return cls(
            symbol=symbol,
            format=PriceSeriesFormat.PRICE_POINTS,
            points=list(points),
            source=source,
        )

    def closes(self) -> list[float]:
        """Return close prices in ascending date order.

        Non-numeric or non-finite closes are dropped.
        """
        if self.format is PriceSeriesFormat.DAILY_SERIES:
            dated = [(_as_date(day), value) for day, value in self.daily.items()]
        else:
            dated = [(point.date, point.close) for point in self.points]

        dated.sort(key=lambda item: item[0])

        closes = []
        for _, value in dated:
            try:
                close = float(value)
            except (TypeError, ValueError):
                continue
            if math.isfinite(close):
                closes.append(close)
        return closes

    def __len__(self) -> int:
        """Return number of data points."""
        if self.format is PriceSeriesFormat.DAILY_SERIES:
            return len(self.daily)
        return len(self.points)
