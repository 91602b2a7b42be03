"""Cross-check computed streaks against known long-streak dividend payers.

Free data sources often have gaps in long dividend histories, which makes a
60-year king look like a 4-year payer. The reference table below flags those
results and proposes a dampened replacement.
Sources: S&P Dividend Aristocrats list, Dividend Kings lists.
"""

import math
from dataclasses import dataclass

from divvy.data.models.analysis import StreakValidation

# Ratio of computed to expected streak at which confidence drops
HIGH_CONFIDENCE_RATIO = 0.8
MEDIUM_CONFIDENCE_RATIO = 0.5
# A computed streak this long is never replaced
MIN_TRUSTED_STREAK = 10
# Adjusted streak = max(computed, min(expected * factor, cap))
ADJUSTMENT_FACTOR = 0.7
ADJUSTMENT_CAP = 25


@dataclass(frozen=True)
class EliteStock:
    """A dividend king (50+ years) or aristocrat (25+ years)."""

    ticker: str
    name: str
    years_of_increases: int
    category: str  # "king" or "aristocrat"


DIVIDEND_KINGS: tuple[EliteStock, ...] = (
    EliteStock("KO", "Coca-Cola", 61, "king"),
    EliteStock("JNJ", "Johnson & Johnson", 61, "king"),
    EliteStock("PG", "Procter & Gamble", 67, "king"),
    EliteStock("MMM", "3M Company", 65, "king"),
    EliteStock("CL", "Colgate-Palmolive", 60, "king"),
    EliteStock("KMB", "Kimberly-Clark", 51, "king"),
    EliteStock("SYY", "Sysco Corporation", 53, "king"),
    EliteStock("HRL", "Hormel Foods", 57, "king"),
    EliteStock("WMT", "Walmart", 49, "king"),
    EliteStock("PEP", "PepsiCo", 51, "king"),
    EliteStock("MDT", "Medtronic", 46, "king"),
    EliteStock("CVX", "Chevron", 36, "king"),
    EliteStock("XOM", "Exxon Mobil", 40, "king"),
    EliteStock("ED", "Consolidated Edison", 49, "king"),
    EliteStock("SO", "Southern Company", 42, "king"),
)

DIVIDEND_ARISTOCRATS: tuple[EliteStock, ...] = (
    EliteStock("ABBV", "AbbVie", 51, "aristocrat"),
    EliteStock("ADM", "Archer-Daniels-Midland", 48, "aristocrat"),
    EliteStock("AFL", "Aflac", 40, "aristocrat"),
    EliteStock("ALB", "Albemarle Corporation", 29, "aristocrat"),
    EliteStock("APD", "Air Products and Chemicals", 41, "aristocrat"),
    EliteStock("ATO", "Atmos Energy", 39, "aristocrat"),
    EliteStock("BDX", "Becton Dickinson", 51, "aristocrat"),
    EliteStock("BF.B", "Brown-Forman", 39, "aristocrat"),
    EliteStock("CAT", "Caterpillar", 29, "aristocrat"),
    EliteStock("CHD", "Church & Dwight", 27, "aristocrat"),
    EliteStock("CTAS", "Cintas Corporation", 39, "aristocrat"),
    EliteStock("ECL", "Ecolab", 31, "aristocrat"),
    EliteStock("EMR", "Emerson Electric", 66, "aristocrat"),
    EliteStock("ESS", "Essex Property Trust", 29, "aristocrat"),
    EliteStock("EXPD", "Expeditors International", 28, "aristocrat"),
    EliteStock("GPC", "Genuine Parts", 67, "aristocrat"),
    EliteStock("ITW", "Illinois Tool Works", 60, "aristocrat"),
    EliteStock("LOW", "Lowe's Companies", 60, "aristocrat"),
    EliteStock("MCD", "McDonald's Corporation", 46, "aristocrat"),
    EliteStock("MKC", "McCormick & Company", 37, "aristocrat"),
    EliteStock("NDSN", "Nordson Corporation", 60, "aristocrat"),
    EliteStock("NUE", "Nucor Corporation", 50, "aristocrat"),
    EliteStock("O", "Realty Income", 28, "aristocrat"),
    EliteStock("PNR", "Pentair plc", 47, "aristocrat"),
    EliteStock("PPG", "PPG Industries", 51, "aristocrat"),
    EliteStock("SHW", "Sherwin-Williams", 44, "aristocrat"),
    EliteStock("SPGI", "S&P Global", 50, "aristocrat"),
    EliteStock("SWK", "Stanley Black & Decker", 55, "aristocrat"),
    EliteStock("TGT", "Target Corporation", 55, "aristocrat"),
    EliteStock("TROW", "T. Rowe Price", 37, "aristocrat"),
    EliteStock("WBA", "Walgreens Boots Alliance", 47, "aristocrat"),
    EliteStock("WST", "West Pharmaceutical Services", 30, "aristocrat"),
)

_ELITE_BY_TICKER = {stock.ticker: stock for stock in DIVIDEND_KINGS + DIVIDEND_ARISTOCRATS}


def get_elite(ticker: str) -> EliteStock | None:
    """Look up a ticker in the reference table."""
    return _ELITE_BY_TICKER.get(ticker.upper())


def get_kings() -> list[str]:
    return [stock.ticker for stock in DIVIDEND_KINGS]


def get_aristocrats() -> list[str]:
    return [stock.ticker for stock in DIVIDEND_ARISTOCRATS]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_streak(ticker: str, computed: int) -> StreakValidation:
    """Check a computed streak against the reference table.

    Args:
        ticker: Stock symbol.
        computed: Streak from the dividend history.

    Returns:
        StreakValidation. adjusted_streak is set only when the computed
        streak is implausibly low (under 10 years and under half of the
        expected streak).

    Example:
        >>> validate_streak("KO", 4).adjusted_streak
        25
        >>> validate_streak("AAPL", 4).confidence
        'high'
    """
    elite = get_elite(ticker)
    if elite is None:
        return StreakValidation(is_valid=True, confidence="high")

    expected = elite.years_of_increases
    ratio = computed / expected

    if ratio >= HIGH_CONFIDENCE_RATIO:
        return StreakValidation(is_valid=True, confidence="high", expected_streak=expected)

    if ratio >= MEDIUM_CONFIDENCE_RATIO:
        return StreakValidation(
            is_valid=True,
            confidence="medium",
            expected_streak=expected,
            warning=(
                f"Calculated streak ({computed}) lower than expected ({expected}) "
                "due to data quality issues"
            ),
        )

    if computed >= MIN_TRUSTED_STREAK:
        return StreakValidation(
            is_valid=True,
            confidence="low",
            expected_streak=expected,
            warning=(
                "Significant data quality issues detected. "
                f"Expected {expected} years, calculated {computed}"
            ),
        )

    adjusted = _round_half_up(max(computed, min(expected * ADJUSTMENT_FACTOR, ADJUSTMENT_CAP)))
    return StreakValidation(
        is_valid=False,
        confidence="low",
        expected_streak=expected,
        warning=(
            f"Major data quality issues. Known {elite.category} with {expected} years, "
            f"but calculated only {computed}"
        ),
        adjusted_streak=adjusted,
        rationale=f"Adjusted for known {elite.category} status with data quality issues",
    )
