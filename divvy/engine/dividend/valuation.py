"""Single-stage dividend discount valuation."""

from divvy.engine.math_utils import clamp, is_valid_number

# Growth bounds for valuation, tighter than the general growth clamp
MIN_VALUATION_GROWTH = -0.05
MAX_VALUATION_GROWTH = 0.06


def calc_gordon_growth(
    forward_dividend: float | None,
    price: float | None,
    required_return: float,
    safe_growth: float,
) -> float | None:
    """Gordon Growth Model fair value.

    Fair value = D1 / (r - g), with g clamped to [-5%, +6%].

    Args:
        forward_dividend: Expected dividend over the next year (D1).
        price: Current price. A missing or zero price yields no value.
        required_return: Discount rate r.
        safe_growth: Growth estimate before the valuation clamp.

    Returns:
        Fair value per share, or None when r <= g or inputs are unknown.

    Example:
        >>> round(calc_gordon_growth(4.12, 72.50, 0.09, 0.02), 2)
        58.86
    """
    if not price or not is_valid_number(forward_dividend):
        return None

    growth = clamp(safe_growth, MIN_VALUATION_GROWTH, MAX_VALUATION_GROWTH)
    if required_return <= growth:
        return None

    return forward_dividend / (required_return - growth)
