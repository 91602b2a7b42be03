"""Data type and provider enumerations for routing."""

from enum import Enum


class DataType(Enum):
    """Data type enumeration for routing decisions."""

    QUOTE = "quote"
    DIVIDENDS = "dividends"
    FUNDAMENTALS = "fundamentals"
    PRICE_SERIES = "price_series"


class ProviderChoice(Enum):
    """Caller's provider preference for one analysis."""

    DEFAULT = "default"  # bulk provider only
    PRECISION = "precision"  # precision provider first, bulk fallback
    AUTO = "auto"  # precision first only when it is configured
