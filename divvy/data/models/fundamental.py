"""Fundamental data models."""

import math
from dataclasses import dataclass
from typing import Any

# Number of raw inputs a provider can fill
FUNDAMENTAL_FIELDS = (
    "operating_cash_flow",
    "capital_expenditure",
    "cash_dividends_paid",
    "net_income",
    "payout_ratio",
)


def to_finite(value: Any) -> float | None:
    """Return value as float, or None when unknown/non-finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


@dataclass(frozen=True)
class Fundamentals:
    """Latest annual financials relevant to dividend safety.

    Every field is either a finite number or None ("unknown"). Unknown values
    are never replaced with 0, since 0 has business meaning (e.g. no payout).
    Capital expenditure and dividends paid are stored as positive magnitudes.
    """

    operating_cash_flow: float | None = None
    capital_expenditure: float | None = None
    cash_dividends_paid: float | None = None
    net_income: float | None = None
    payout_ratio: float | None = None
    source: str = "unknown"

    @classmethod
    def from_values(
        cls,
        operating_cash_flow: Any = None,
        capital_expenditure: Any = None,
        cash_dividends_paid: Any = None,
        net_income: Any = None,
        payout_ratio: Any = None,
        source: str = "unknown",
    ) -> "Fundamentals":
        """Build from raw provider values, normalizing signs and unknowns."""
        capex = to_finite(capital_expenditure)
        dividends = to_finite(cash_dividends_paid)
        return cls(
            operating_cash_flow=to_finite(operating_cash_flow),
            capital_expenditure=abs(capex) if capex is not None else None,
            cash_dividends_paid=abs(dividends) if dividends is not None else None,
            net_income=to_finite(net_income),
            payout_ratio=to_finite(payout_ratio),
            source=source,
        )

    @property
    def free_cash_flow(self) -> float | None:
        """Operating cash flow minus capital expenditure."""
        if self.operating_cash_flow is None or self.capital_expenditure is None:
            return None
        return self.operating_cash_flow - self.capital_expenditure

    @property
    def fcf_payout_ratio(self) -> float | None:
        """Dividends paid / free cash flow."""
        fcf = self.free_cash_flow
        if self.cash_dividends_paid is None or fcf is None or fcf == 0:
            return None
        return self.cash_dividends_paid / fcf

    @property
    def fcf_coverage(self) -> float | None:
        """Free cash flow / dividends paid.

        Infinite when the company pays no dividends out of known cash flow.
        """
        fcf = self.free_cash_flow
        if self.cash_dividends_paid is None or fcf is None:
            return None
        if self.cash_dividends_paid == 0:
            return math.inf
        return fcf / self.cash_dividends_paid

    @property
    def eps_payout_ratio(self) -> float | None:
        """Reported payout ratio, else dividends paid / |net income|."""
        if self.payout_ratio is not None:
            return self.payout_ratio
        if self.cash_dividends_paid is not None and self.net_income:
            return self.cash_dividends_paid / abs(self.net_income)
        return None

    @property
    def known_field_count(self) -> int:
        """Number of raw inputs that are known."""
        return sum(getattr(self, name) is not None for name in FUNDAMENTAL_FIELDS)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (raw inputs only)."""
        return {
            "operating_cash_flow": self.operating_cash_flow,
            "capital_expenditure": self.capital_expenditure,
            "cash_dividends_paid": self.cash_dividends_paid,
            "net_income": self.net_income,
            "payout_ratio": self.payout_ratio,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Fundamentals":
        """Create instance from dictionary."""
        return cls(
            operating_cash_flow=data.get("operating_cash_flow"),
            capital_expenditure=data.get("capital_expenditure"),
            cash_dividends_paid=data.get("cash_dividends_paid"),
            net_income=data.get("net_income"),
            payout_ratio=data.get("payout_ratio"),
            source=data.get("source", "unknown"),
        )
