"""Dividend history aggregation and streak detection."""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from divvy.data.models.stock import AnnualDividendPoint, DividendEvent
from divvy.engine.math_utils import is_valid_number, safe_sum

TTM_WINDOW = timedelta(days=365)


@dataclass(frozen=True)
class StreakPolicy:
    """How strictly a year-over-year decline breaks a dividend streak.

    Attributes:
        name: Preset name, for reporting.
        decline_tolerance: Fractional decline still counted as "not a cut"
            (absorbs rounding and split adjustments).
        noise_threshold: Declines smaller than this may be forgiven when the
            following year recovers. None disables forgiveness.
        recovery_lookahead: How many more recent years are inspected for
            the recovery.
    """

    name: str = "standard"
    decline_tolerance: float = 0.02
    noise_threshold: float | None = 0.05
    recovery_lookahead: int = 1

    @property
    def forgives_noise(self) -> bool:
        return self.noise_threshold is not None and self.recovery_lookahead > 0

    @classmethod
    def strict(cls) -> "StreakPolicy":
        """0.1% tolerance, no forgiveness."""
        return cls(name="strict", decline_tolerance=0.001, noise_threshold=None, recovery_lookahead=0)

    @classmethod
    def standard(cls) -> "StreakPolicy":
        """2% tolerance, declines under 5% forgiven if the next year recovers."""
        return cls()

    @classmethod
    def lenient(cls) -> "StreakPolicy":
        """2% tolerance, no forgiveness."""
        return cls(name="lenient", decline_tolerance=0.02, noise_threshold=None, recovery_lookahead=0)

    @classmethod
    def from_name(cls, name: str) -> "StreakPolicy":
        """Look up a preset by name."""
        presets = {"strict": cls.strict, "standard": cls.standard, "lenient": cls.lenient}
        if name not in presets:
            raise ValueError(f"Unknown streak policy: {name}. Available: {', '.join(presets)}")
        return presets[name]()

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "decline_tolerance": self.decline_tolerance,
            "noise_threshold": self.noise_threshold,
            "recovery_lookahead": self.recovery_lookahead,
        }


def annualize_dividends(events: Iterable[DividendEvent]) -> list[AnnualDividendPoint]:
    """Group dividend events by UTC calendar year and sum them.

    Args:
        events: Dividend events in any order.

    Returns:
        Annual totals sorted by year ascending. Non-finite amounts are skipped.
    """
    totals: dict[int, float] = defaultdict(float)
    for event in events:
        if not is_valid_number(event.amount):
            continue
        totals[event.year] += event.amount

    return [AnnualDividendPoint(year=year, amount=totals[year]) for year in sorted(totals)]


def calc_ttm_dividends(events: Iterable[DividendEvent], as_of: datetime | None = None) -> float:
    """Sum dividends paid within 365 days of as_of.

    Args:
        events: Dividend events.
        as_of: Reference time (aware). Defaults to now (UTC).

    Returns:
        Trailing twelve month dividend total.
    """
    as_of = as_of or datetime.now(timezone.utc)
    return safe_sum(event.amount for event in events if as_of - event.date <= TTM_WINDOW)


def calc_dividend_streak(
    series: Sequence[AnnualDividendPoint],
    policy: StreakPolicy | None = None,
) -> int:
    """Count consecutive non-decreasing years, scanning back from the latest.

    Each step compares a year (current) with the year before it (previous):

    - current >= previous * (1 - decline_tolerance): the streak continues.
    - Otherwise, when the policy forgives noise, the decline is below
      noise_threshold and a more recent year within recovery_lookahead is
      back at previous * (1 - decline_tolerance), the dip is treated as data
      noise and still counted.
    - Otherwise the streak ends.

    Args:
        series: Annual dividend totals. Sorted by year before scanning.
        policy: Tolerance policy (default: StreakPolicy.standard()).

    Returns:
        Number of qualifying year-over-year steps.

    Example:
        >>> pts = [AnnualDividendPoint(2021, 1.0), AnnualDividendPoint(2022, 1.1),
        ...        AnnualDividendPoint(2023, 1.2)]
        >>> calc_dividend_streak(pts)
        2
    """
    policy = policy or StreakPolicy.standard()
    amounts = [point.amount for point in sorted(series, key=lambda p: p.year)]
    floor_factor = 1 - policy.decline_tolerance

    streak = 0
    for i in range(len(amounts) - 1, 0, -1):
        current = amounts[i]
        previous = amounts[i - 1]

        if current >= previous * floor_factor:
            streak += 1
            continue

        if policy.forgives_noise and previous > 0:
            decline = (previous - current) / previous
            following = amounts[i + 1 : i + 1 + policy.recovery_lookahead]
            if decline < policy.noise_threshold and any(
                amount >= previous * floor_factor for amount in following
            ):
                streak += 1
                continue

        break

    return streak
