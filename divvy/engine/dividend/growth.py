"""Dividend growth estimation.

Growth feeds both the growth score and the fair value, so it is gated on
payout safety: a company paying out more than it earns is not assumed to
keep raising its dividend.
"""

from collections.abc import Sequence

from divvy.data.models.fundamental import Fundamentals
from divvy.data.models.stock import AnnualDividendPoint
from divvy.engine.math_utils import calc_cagr, clamp

# General bounds on the growth estimate
MIN_SAFE_GROWTH = -0.10
MAX_SAFE_GROWTH = 0.15

# Risk gates
MAX_EPS_PAYOUT = 0.8
MAX_FCF_PAYOUT = 1.0
MIN_GROWTH_STREAK = 3


def calc_growth_windows(
    series: Sequence[AnnualDividendPoint],
) -> tuple[float | None, float | None]:
    """CAGR over the last 3 and last 5 annual points.

    Each window is computed only when the series has that many points.

    Returns:
        (cagr3, cagr5), each None when unavailable.
    """
    ordered = sorted(series, key=lambda p: p.year)
    cagr3 = calc_cagr(ordered[-3:]) if len(ordered) >= 3 else None
    cagr5 = calc_cagr(ordered[-5:]) if len(ordered) >= 5 else None
    return cagr3, cagr5


def calc_safe_growth(
    cagr5: float | None,
    cagr3: float | None,
    fundamentals: Fundamentals,
    streak: int,
) -> float:
    """Risk-gated dividend growth assumption.

    Args:
        cagr5: 5-point CAGR, preferred when known.
        cagr3: 3-point CAGR, used when cagr5 is unknown.
        fundamentals: Payout inputs for the risk gate.
        streak: Dividend streak in years (after validation).

    Returns:
        Growth rate clamped to [-10%, +15%], capped at 0 for risky payers.
    """
    if cagr5 is not None:
        base = cagr5
    elif cagr3 is not None:
        base = cagr3
    else:
        base = 0.0

    safe_growth = clamp(base, MIN_SAFE_GROWTH, MAX_SAFE_GROWTH)

    eps_payout = fundamentals.eps_payout_ratio
    fcf_payout = fundamentals.fcf_payout_ratio
    if (
        (eps_payout is not None and eps_payout > MAX_EPS_PAYOUT)
        or (fcf_payout is not None and fcf_payout > MAX_FCF_PAYOUT)
        or streak < MIN_GROWTH_STREAK
    ):
        safe_growth = min(safe_growth, 0.0)

    return safe_growth


def calc_forward_dividend(ttm_dividends: float, safe_growth: float) -> float:
    """Next-year dividend: TTM grown by the safe growth rate."""
    return ttm_dividends * (1 + safe_growth)


def calc_yield(amount: float | None, price: float | None) -> float | None:
    """Dividend yield, or None without a positive price."""
    if amount is None or not price or price <= 0:
        return None
    return amount / price
