"""Dividend streak, growth and valuation calculations."""

from divvy.engine.dividend.elite import (
    EliteStock,
    get_aristocrats,
    get_elite,
    get_kings,
    validate_streak,
)
from divvy.engine.dividend.growth import (
    calc_forward_dividend,
    calc_growth_windows,
    calc_safe_growth,
    calc_yield,
)
from divvy.engine.dividend.streak import (
    StreakPolicy,
    annualize_dividends,
    calc_dividend_streak,
    calc_ttm_dividends,
)
from divvy.engine.dividend.valuation import calc_gordon_growth

__all__ = [
    "StreakPolicy",
    "annualize_dividends",
    "calc_ttm_dividends",
    "calc_dividend_streak",
    "calc_growth_windows",
    "calc_safe_growth",
    "calc_forward_dividend",
    "calc_yield",
    "calc_gordon_growth",
    "EliteStock",
    "get_elite",
    "get_kings",
    "get_aristocrats",
    "validate_streak",
]
