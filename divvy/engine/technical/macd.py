"""MACD (Moving Average Convergence Divergence) calculation."""

import math
from collections.abc import Sequence

from divvy.data.models.analysis import MacdSnapshot
from divvy.engine.technical.moving_average import calc_ema_series


def calc_macd(
    prices: Sequence[float],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> MacdSnapshot:
    """Calculate the latest MACD reading.

    MACD line = EMA(fast) - EMA(slow), from index slow_period-1 onward.
    Signal line = EMA(signal_period) of the MACD line.
    Histogram = MACD line - signal line.

    Args:
        prices: Closing prices (oldest to newest).
        fast_period: Fast EMA period.
        slow_period: Slow EMA period.
        signal_period: Signal EMA period.

    Returns:
        MacdSnapshot; all fields None if len(prices) < slow + signal.
    """
    if prices is None or len(prices) < slow_period + signal_period:
        return MacdSnapshot()

    fast = calc_ema_series(prices, fast_period)
    slow = calc_ema_series(prices, slow_period)

    macd_line = [
        fast[i] - slow[i]
        for i in range(slow_period - 1, len(prices))
        if not math.isnan(fast[i]) and not math.isnan(slow[i])
    ]

    signal = calc_ema_series(macd_line, signal_period)

    current_macd = macd_line[-1] if macd_line else None
    current_signal = signal[-1] if signal and not math.isnan(signal[-1]) else None
    if current_macd is None or current_signal is None:
        return MacdSnapshot()

    return MacdSnapshot(
        macd_line=current_macd,
        signal_line=current_signal,
        histogram=current_macd - current_signal,
    )


def interpret_macd(macd: MacdSnapshot, previous: MacdSnapshot | None = None) -> dict:
    """Interpret a MACD reading.

    Args:
        macd: Current reading.
        previous: Prior reading, used for crossover detection.

    Returns:
        Dict with signal (bullish/bearish/neutral), strength
        (strong/moderate/weak), crossover and a list of concerns.
    """
    if not macd.is_available:
        return {
            "signal": "neutral",
            "strength": "weak",
            "crossover": "none",
            "concerns": ["MACD data unavailable"],
        }

    if macd.macd_line > macd.signal_line:
        signal = "bullish"
    elif macd.macd_line < macd.signal_line:
        signal = "bearish"
    else:
        signal = "neutral"

    crossover = "none"
    if previous is not None and previous.is_available:
        was_above = previous.macd_line > previous.signal_line
        is_above = macd.macd_line > macd.signal_line
        if not was_above and is_above:
            crossover = "bullish_crossover"
        elif was_above and not is_above:
            crossover = "bearish_crossover"

    histogram_abs = abs(macd.histogram)
    macd_abs = abs(macd.macd_line)
    if histogram_abs > 0.5 and macd_abs > 1.0:
        strength = "strong"
    elif histogram_abs > 0.2 and macd_abs > 0.5:
        strength = "moderate"
    else:
        strength = "weak"

    concerns = []
    if signal == "bearish" and strength == "strong":
        concerns.append("Strong bearish MACD signal may indicate fundamental weakness")
    if crossover == "bearish_crossover":
        concerns.append("Recent bearish MACD crossover suggests potential trend reversal")
    if macd.histogram < -0.5:
        concerns.append("MACD histogram strongly negative - momentum deteriorating")

    return {
        "signal": signal,
        "strength": strength,
        "crossover": crossover,
        "concerns": concerns,
    }
