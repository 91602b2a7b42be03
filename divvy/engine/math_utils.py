"""Small numeric helpers shared by the calculators."""

import math
from collections.abc import Iterable, Sequence

from divvy.data.models.stock import AnnualDividendPoint


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp x into [lo, hi]."""
    return min(hi, max(lo, x))


def is_valid_number(value: object) -> bool:
    """Check value is a finite real number (bool excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def safe_sum(values: Iterable[float | None]) -> float:
    """Sum values, skipping None and non-finite entries."""
    return sum(v for v in values if is_valid_number(v))


def calc_cagr(series: Sequence[AnnualDividendPoint]) -> float | None:
    """Calculate compound annual growth rate of an annual series.

    Only positive amounts are considered. The span in years is
    last_year - first_year (at least 1).

    Args:
        series: Annual points sorted by year (oldest first).

    Returns:
        CAGR as decimal, or None if fewer than 2 positive points or the
        span is shorter than 2 years.

    Example:
        >>> pts = [AnnualDividendPoint(2020, 1.0), AnnualDividendPoint(2022, 1.21)]
        >>> round(calc_cagr(pts), 4)
        0.1
    """
    positive = [point for point in series if point.amount > 0]
    if len(positive) < 2:
        return None

    first, last = positive[0], positive[-1]
    years = (last.year - first.year) or 1
    if years < 2:
        return None

    return (last.amount / first.amount) ** (1 / years) - 1
