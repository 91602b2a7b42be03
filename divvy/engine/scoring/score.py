"""Dividend sustainability scoring.

Every sub-score is on a 0-100 scale. The composite weights favour payout
safety and cash flow over price action:

    total = 0.25*payout + 0.25*fcf + 0.17*streak + 0.16*growth
            + 0.07*trend + 0.06*macd + 0.04*rsi
"""

import math

from divvy.data.models.analysis import DividendScores, EmaSnapshot, MacdSnapshot, RsiSnapshot
from divvy.data.models.fundamental import Fundamentals
from divvy.engine.math_utils import clamp

SCORE_WEIGHTS = {
    "payout": 0.25,
    "fcf": 0.25,
    "streak": 0.17,
    "growth": 0.16,
    "trend": 0.07,
    "macd": 0.06,
    "rsi": 0.04,
}

NEUTRAL_SCORE = 50.0


def calc_payout_score(payout_ratio: float | None) -> float:
    """Score EPS payout ratio.

    Unknown or non-positive ratios score 100 (no data, assume healthy).
    <= 60% scores 100, >= 100% scores 0, linear in between.

    Example:
        >>> calc_payout_score(0.8)
        50.0
    """
    if payout_ratio is None or not math.isfinite(payout_ratio) or payout_ratio <= 0:
        return 100.0
    if payout_ratio <= 0.6:
        return 100.0
    if payout_ratio >= 1.0:
        return 0.0
    return (1 - (payout_ratio - 0.6) / 0.4) * 100


def calc_fcf_score(coverage: float | None, payout_ratio: float | None = None) -> float:
    """Score free cash flow coverage of the dividend.

    Unknown coverage gets 50 when the payout ratio is known and <= 60%,
    otherwise 0. Coverage of 2x or more scores 100.
    """
    if coverage is None or math.isnan(coverage):
        if payout_ratio is not None and math.isfinite(payout_ratio) and payout_ratio <= 0.6:
            return 50.0
        return 0.0
    if coverage >= 2:
        return 100.0
    if coverage <= 0:
        return 0.0
    return clamp(coverage / 2, 0, 1) * 100


def calc_streak_score(streak: int) -> float:
    """20 or more years of increases scores 100."""
    return clamp(streak / 20, 0, 1) * 100


def calc_growth_score(growth_rate: float) -> float:
    """Map growth -10% -> 0, 0% -> 50, +10% -> 100."""
    return clamp((growth_rate + 0.10) / 0.20, 0, 1) * 100


def calc_trend_score(price: float | None, ema: EmaSnapshot) -> float:
    """Score price position against EMA200/50/20.

    Being under EMA200 is penalised since it suggests the market doubts the
    fundamentals. Missing price or any missing EMA scores 0.
    """
    if not price or not ema.is_complete:
        return 0.0

    score = 0.0
    score += 50 if price > ema.ema200 else -20
    if price > ema.ema50:
        score += 30
    if price > ema.ema20:
        score += 20

    return max(0.0, score)


def calc_macd_score(macd: MacdSnapshot) -> float:
    """Score MACD momentum around a neutral 50.

    - Line vs signal: up to +/-30, scaled by |macd - signal| * 15
    - Histogram: up to +/-20, scaled by |histogram| * 10
    - Line vs zero: up to +/-10, scaled by |macd| * 5
    """
    if not macd.is_available:
        return NEUTRAL_SCORE

    score = NEUTRAL_SCORE

    spread = min(30, abs(macd.macd_line - macd.signal_line) * 15)
    score += spread if macd.macd_line > macd.signal_line else -spread

    momentum = min(20, abs(macd.histogram) * 10)
    score += momentum if macd.histogram > 0 else -momentum

    trend = min(10, abs(macd.macd_line) * 5)
    score += trend if macd.macd_line > 0 else -trend

    return clamp(score, 0, 100)


def calc_rsi_score(rsi: RsiSnapshot) -> float:
    """Score RSI, preferring readings that are neither overbought nor oversold."""
    if not rsi.is_available:
        return NEUTRAL_SCORE

    value = rsi.rsi
    if 40 <= value <= 60:
        score = 100.0
    elif 30 <= value <= 70:
        score = 85.0
    elif 20 <= value <= 80:
        score = 70.0
    elif value > 90:
        score = 10.0
    elif value > 80:
        score = 30.0
    elif value < 10:
        score = 20.0
    else:
        score = 40.0

    return clamp(score, 0, 100)


def calc_dividend_scores(
    fundamentals: Fundamentals,
    streak: int,
    safe_growth: float,
    price: float | None,
    ema: EmaSnapshot,
    macd: MacdSnapshot,
    rsi: RsiSnapshot,
) -> DividendScores:
    """Calculate all sub-scores for one analysis."""
    payout_ratio = fundamentals.eps_payout_ratio
    return DividendScores(
        payout=calc_payout_score(payout_ratio),
        fcf=calc_fcf_score(fundamentals.fcf_coverage, payout_ratio),
        streak=calc_streak_score(streak),
        growth=calc_growth_score(safe_growth),
        trend=calc_trend_score(price, ema),
        macd=calc_macd_score(macd),
        rsi=calc_rsi_score(rsi),
    )


def calc_total_score(scores: DividendScores) -> int:
    """Weighted composite, rounded half up to an integer."""
    weighted = sum(weight * getattr(scores, name) for name, weight in SCORE_WEIGHTS.items())
    return int(math.floor(weighted + 0.5))
