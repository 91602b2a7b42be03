"""Dividend scoring module."""

from divvy.engine.scoring.score import (
    SCORE_WEIGHTS,
    calc_dividend_scores,
    calc_fcf_score,
    calc_growth_score,
    calc_macd_score,
    calc_payout_score,
    calc_rsi_score,
    calc_streak_score,
    calc_total_score,
    calc_trend_score,
)

__all__ = [
    "SCORE_WEIGHTS",
    "calc_payout_score",
    "calc_fcf_score",
    "calc_streak_score",
    "calc_growth_score",
    "calc_trend_score",
    "calc_macd_score",
    "calc_rsi_score",
    "calc_dividend_scores",
    "calc_total_score",
]
