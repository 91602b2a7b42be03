"""Quote and dividend data models."""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

# Plausible range for dividend event years (exclusive bounds)
MIN_DIVIDEND_YEAR = 1990
MAX_DIVIDEND_YEAR = 2030


@dataclass(frozen=True)
class Quote:
    """Current trading snapshot for a ticker.

    Attributes:
        symbol: Ticker symbol.
        price: Last trade price (>= 0).
        currency: ISO currency code.
        name: Display name of the issuer.
        source: Provider that produced the quote.
    """

    symbol: str
    price: float
    currency: str = "USD"
    name: str = ""
    source: str = "unknown"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "currency": self.currency,
            "name": self.name,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quote":
        """Create instance from dictionary."""
        return cls(
            symbol=data["symbol"],
            price=data["price"],
            currency=data.get("currency") or "USD",
            name=data.get("name") or "",
            source=data.get("source", "unknown"),
        )


def _to_utc(value: datetime | date | str | int | float) -> datetime:
    """Normalize a provider timestamp to an aware UTC datetime."""
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


@dataclass(frozen=True)
class DividendEvent:
    """One cash distribution.

    Attributes:
        date: Ex-dividend (or pay) date, always UTC-aware.
        amount: Cash amount per share.
    """

    date: datetime
    amount: float

    @classmethod
    def create(cls, when: datetime | date | str | int | float, amount: Any) -> "DividendEvent":
        """Build an event from loosely typed provider values."""
        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = math.nan
        return cls(date=_to_utc(when), amount=value)

    @property
    def year(self) -> int:
        """Calendar year in UTC."""
        return self.date.year

    def is_valid(self) -> bool:
        """Check amount is finite and positive and the year is plausible."""
        return (
            math.isfinite(self.amount)
            and self.amount > 0
            and MIN_DIVIDEND_YEAR < self.year < MAX_DIVIDEND_YEAR
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.date.isoformat(), "amount": self.amount}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DividendEvent":
        """Create instance from dictionary."""
        return cls.create(data["date"], data["amount"])


@dataclass(frozen=True)
class AnnualDividendPoint:
    """Summed dividends for one calendar year."""

    year: int
    amount: float

    def to_list(self) -> list[Any]:
        """Compact [year, amount] form used in stored payloads."""
        return [self.year, self.amount]

    @classmethod
    def from_list(cls, data: list[Any]) -> "AnnualDividendPoint":
        """Create instance from [year, amount]."""
        return cls(year=int(data[0]), amount=float(data[1]))
