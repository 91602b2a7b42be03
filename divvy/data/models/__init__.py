"""Data models for market data and analysis results."""

from divvy.data.models.analysis import (
    AnalysisResult,
    DividendScores,
    EmaSnapshot,
    MacdSnapshot,
    RsiSnapshot,
    StreakValidation,
)
from divvy.data.models.enums import DataType, ProviderChoice
from divvy.data.models.fundamental import Fundamentals
from divvy.data.models.stock import AnnualDividendPoint, DividendEvent, Quote
from divvy.data.models.technical import PricePoint, PriceSeries, PriceSeriesFormat

__all__ = [
    "DataType",
    "ProviderChoice",
    "Quote",
    "DividendEvent",
    "AnnualDividendPoint",
    "Fundamentals",
    "PricePoint",
    "PriceSeries",
    "PriceSeriesFormat",
    "EmaSnapshot",
    "MacdSnapshot",
    "RsiSnapshot",
    "DividendScores",
    "StreakValidation",
    "AnalysisResult",
]
