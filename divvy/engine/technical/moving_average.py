"""Exponential moving average calculations.

Used for price-vs-trend scoring (EMA20/50/200) and as the building block
of MACD.
"""

import math
from collections.abc import Sequence

from divvy.data.models.analysis import EmaSnapshot

DEFAULT_EMA_PERIODS = (20, 50, 200)


def calc_ema_series(prices: Sequence[float], period: int = 20) -> list[float]:
    """Calculate EMA series for all data points.

    The first EMA value is the simple average of the first `period` prices,
    placed at index period-1. Earlier indices are NaN.

    EMA[i] = (Price[i] - EMA[i-1]) × k + EMA[i-1]
    where k = 2 / (period + 1)

    Args:
        prices: List of closing prices (oldest to newest).
        period: EMA period.

    Returns:
        List the same length as prices, or empty if len(prices) < period.

    Example:
        >>> series = calc_ema_series([1, 2, 3, 4, 5], period=3)
        >>> len(series), math.isnan(series[0]), series[2]
        (5, True, 2.0)
    """
    if prices is None or period <= 0 or len(prices) < period:
        return []

    k = 2 / (period + 1)

    result = [math.nan] * len(prices)
    result[period - 1] = sum(prices[:period]) / period

    for i in range(period, len(prices)):
        result[i] = (prices[i] - result[i - 1]) * k + result[i - 1]

    return result


def calc_ema(prices: Sequence[float], period: int = 20) -> float | None:
    """Latest EMA value, or None if insufficient data."""
    series = calc_ema_series(prices, period)
    if not series:
        return None
    return series[-1]


def calc_ema_snapshot(
    prices: Sequence[float],
    periods: tuple[int, int, int] = DEFAULT_EMA_PERIODS,
) -> EmaSnapshot:
    """Calculate the short/medium/long EMAs used for trend scoring.

    The snapshot is all-or-nothing: if the history is shorter than the
    longest period, every field is None.
    """
    short, medium, long = periods
    if prices is None or len(prices) < max(periods):
        return EmaSnapshot()
    return EmaSnapshot(
        ema20=calc_ema(prices, short),
        ema50=calc_ema(prices, medium),
        ema200=calc_ema(prices, long),
    )


def analyze_ema_trend(price: float | None, ema: EmaSnapshot) -> dict:
    """Describe price position relative to the EMAs.

    Trading persistently under EMA200 usually means the market doubts the
    fundamentals, so it counts double.

    Returns:
        Dict with under_ema200/under_ema50/under_ema20 flags, a list of
        concerns and a trend_strength label.
    """
    if not price or not ema.is_complete:
        return {
            "under_ema200": False,
            "under_ema50": False,
            "under_ema20": False,
            "concerns": ["EMA data unavailable"],
            "trend_strength": "neutral",
        }

    under_200 = price < ema.ema200
    under_50 = price < ema.ema50
    under_20 = price < ema.ema20

    concerns = []
    bearish = 0
    bullish = 0

    if under_200:
        concerns.append("Stock trading below EMA200 - market may doubt fundamentals")
        bearish += 2
    else:
        bullish += 2

    if under_50:
        concerns.append("Stock below EMA50 - medium-term trend is bearish")
        bearish += 1
    else:
        bullish += 1

    if under_20:
        concerns.append("Stock below EMA20 - short-term momentum is negative")
        bearish += 1
    else:
        bullish += 1

    if bearish >= 3:
        strength = "strong_bearish"
    elif bearish >= 2:
        strength = "bearish"
    elif bullish >= 3:
        strength = "strong_bullish"
    elif bullish >= 2:
        strength = "bullish"
    else:
        strength = "neutral"

    return {
        "under_ema200": under_200,
        "under_ema50": under_50,
        "under_ema20": under_20,
        "concerns": concerns,
        "trend_strength": strength,
    }
