"""Technical analysis module."""

from divvy.engine.technical.macd import calc_macd, interpret_macd
from divvy.engine.technical.moving_average import (
    DEFAULT_EMA_PERIODS,
    analyze_ema_trend,
    calc_ema,
    calc_ema_series,
    calc_ema_snapshot,
)
from divvy.engine.technical.rsi import calc_rsi, get_rsi_zone, interpret_rsi

__all__ = [
    "DEFAULT_EMA_PERIODS",
    "calc_ema_series",
    "calc_ema",
    "calc_ema_snapshot",
    "analyze_ema_trend",
    "calc_macd",
    "interpret_macd",
    "calc_rsi",
    "get_rsi_zone",
    "interpret_rsi",
]
