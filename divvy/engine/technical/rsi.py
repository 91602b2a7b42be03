"""RSI (Relative Strength Index) calculation."""

from collections.abc import Sequence

from divvy.data.models.analysis import RsiSnapshot


def calc_rsi(prices: Sequence[float], period: int = 14) -> RsiSnapshot:
    """Calculate Relative Strength Index (RSI).

    RSI = 100 - (100 / (1 + RS))
    where RS = Average Gain / Average Loss

    Averages are seeded with the simple mean of the first `period` changes
    and then smoothed with Wilder's method.

    Args:
        prices: List of closing prices (oldest to newest).
        period: RSI period (default 14).

    Returns:
        RsiSnapshot with RSI rounded to 2 decimals, 100 when there were no
        losses, or None if len(prices) < period + 1.

    Example:
        >>> calc_rsi([100 + i for i in range(20)]).rsi
        100.0
    """
    if prices is None or len(prices) < period + 1:
        return RsiSnapshot(rsi=None, period=period)

    changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
    gains = [max(0.0, c) for c in changes]
    losses = [abs(min(0.0, c)) for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period

    if avg_loss == 0:
        return RsiSnapshot(rsi=100.0, period=period)

    rs = avg_gain / avg_loss
    rsi = 100 - (100 / (1 + rs))

    return RsiSnapshot(rsi=round(rsi, 2), period=period)


def get_rsi_zone(rsi: float | None) -> str:
    """Categorize RSI into zones."""
    if rsi is None:
        return "unknown"

    if rsi >= 80:
        return "extreme_overbought"
    elif rsi >= 70:
        return "overbought"
    elif rsi <= 20:
        return "extreme_oversold"
    elif rsi <= 30:
        return "oversold"
    else:
        return "neutral"


def interpret_rsi(snapshot: RsiSnapshot, previous_rsi: float | None = None) -> dict:
    """Interpret an RSI reading for a dividend investor.

    Returns:
        Dict with zone, trend (rising/falling/stable) and a list of concerns.
    """
    if not snapshot.is_available:
        return {"zone": "unknown", "trend": "stable", "concerns": ["RSI data unavailable"]}

    rsi = snapshot.rsi
    zone = get_rsi_zone(rsi)

    trend = "stable"
    if previous_rsi is not None and abs(rsi - previous_rsi) > 2:
        trend = "rising" if rsi > previous_rsi else "falling"

    concerns = []
    if zone == "extreme_overbought":
        concerns.append("Stock severely overbought - potential price correction ahead")
    elif zone == "overbought":
        concerns.append("Stock overbought - momentum may be unsustainable")
    elif zone == "extreme_oversold":
        concerns.append("Stock severely oversold - may indicate fundamental issues or opportunity")

    if rsi > 70 and trend == "rising":
        concerns.append("RSI rising into overbought territory - consider timing of entry")

    return {"zone": zone, "trend": trend, "concerns": concerns}
