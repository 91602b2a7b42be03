"""Tests for dividend streak, growth and valuation calculations."""

from datetime import datetime, timezone

import pytest

from divvy.data.models import AnnualDividendPoint, DividendEvent, Fundamentals
from divvy.engine.dividend import (
    StreakPolicy,
    annualize_dividends,
    calc_dividend_streak,
    calc_forward_dividend,
    calc_gordon_growth,
    calc_growth_windows,
    calc_safe_growth,
    calc_ttm_dividends,
    calc_yield,
)


def _series(*pairs):
    return [AnnualDividendPoint(year, amount) for year, amount in pairs]


class TestAnnualize:
    """Tests for annualize_dividends."""

    def test_groups_by_year_sorted(self):
        events = [
            DividendEvent.create("2023-03-01", 0.5),
            DividendEvent.create("2022-06-01", 0.4),
            DividendEvent.create("2023-09-01", 0.5),
        ]
        assert annualize_dividends(events) == _series((2022, 0.4), (2023, 1.0))

    def test_skips_non_finite_amounts(self):
        events = [DividendEvent.create("2023-03-01", "n/a"), DividendEvent.create("2023-06-01", 0.3)]
        assert annualize_dividends(events) == _series((2023, 0.3))

    def test_empty(self):
        assert annualize_dividends([]) == []


class TestTTM:
    """Tests for calc_ttm_dividends."""

    def test_window_is_365_days(self):
        as_of = datetime(2024, 6, 30, tzinfo=timezone.utc)
        events = [
            DividendEvent.create("2023-06-30", 1.0),  # exactly 366 days earlier (leap year)
            DividendEvent.create("2023-07-01", 0.5),  # 365 days earlier
            DividendEvent.create("2024-03-15", 0.5),
        ]
        assert calc_ttm_dividends(events, as_of) == pytest.approx(1.0)

    def test_no_events(self):
        assert calc_ttm_dividends([], datetime(2024, 1, 1, tzinfo=timezone.utc)) == 0


class TestStreak:
    """Tests for calc_dividend_streak."""

    def test_steady_growth(self):
        """Four year-over-year increases."""
        series = _series((2019, 1.00), (2020, 1.10), (2021, 1.21), (2022, 1.33), (2023, 1.46))
        assert calc_dividend_streak(series) == 4

    def test_cut_breaks_streak(self):
        """A 50% cut in 2021 leaves only the two later steps."""
        series = _series((2019, 1.000), (2020, 1.100), (2021, 0.500), (2022, 0.600), (2023, 0.700))
        assert calc_dividend_streak(series) == 2

    def test_unsorted_input(self):
        series = _series((2023, 1.46), (2019, 1.00), (2021, 1.21), (2020, 1.10), (2022, 1.33))
        assert calc_dividend_streak(series) == 4

    def test_flat_dividend_counts(self):
        series = _series((2020, 1.0), (2021, 1.0), (2022, 1.0))
        assert calc_dividend_streak(series) == 2

    def test_small_decline_within_tolerance(self):
        """A 1% dip is within the 2% standard tolerance."""
        series = _series((2021, 1.00), (2022, 0.99), (2023, 1.05))
        assert calc_dividend_streak(series, StreakPolicy.standard()) == 2
        assert calc_dividend_streak(series, StreakPolicy.strict()) == 1

    def test_noise_forgiven_when_next_year_recovers(self):
        """A 4% dip followed by recovery is treated as noise."""
        series = _series((2020, 1.00), (2021, 1.00), (2022, 0.96), (2023, 1.02))
        assert calc_dividend_streak(series, StreakPolicy.standard()) == 3
        assert calc_dividend_streak(series, StreakPolicy.lenient()) == 1

    def test_noise_not_forgiven_without_recovery(self):
        series = _series((2020, 1.00), (2021, 1.00), (2022, 0.96), (2023, 0.96))
        assert calc_dividend_streak(series, StreakPolicy.standard()) == 1

    def test_latest_year_dip_not_forgiven(self):
        """Nothing more recent can show a recovery."""
        series = _series((2021, 1.00), (2022, 1.00), (2023, 0.96))
        assert calc_dividend_streak(series, StreakPolicy.standard()) == 0

    def test_short_series(self):
        assert calc_dividend_streak([]) == 0
        assert calc_dividend_streak(_series((2023, 1.0))) == 0

    def test_non_decreasing_series_counts_every_step(self):
        """Any non-decreasing series scores len - 1 under every policy."""
        series = _series(*[(2000 + i, 1.0 + 0.05 * (i // 2)) for i in range(12)])
        for policy in (StreakPolicy.strict(), StreakPolicy.standard(), StreakPolicy.lenient()):
            assert calc_dividend_streak(series, policy) == 11

    def test_policy_from_name(self):
        assert StreakPolicy.from_name("strict").decline_tolerance == 0.001
        assert not StreakPolicy.from_name("lenient").forgives_noise
        with pytest.raises(ValueError, match="Unknown streak policy"):
            StreakPolicy.from_name("loose")


class TestGrowth:
    """Tests for growth windows and safe growth."""

    def test_growth_windows(self):
        series = _series(*[(2015 + i, 1.1**i) for i in range(8)])
        cagr3, cagr5 = calc_growth_windows(series)
        assert cagr3 == pytest.approx(0.10)
        assert cagr5 == pytest.approx(0.10)

    def test_growth_windows_short_history(self):
        cagr3, cagr5 = calc_growth_windows(_series((2021, 1.0), (2022, 1.1), (2023, 1.21)))
        assert cagr3 == pytest.approx(0.10)
        assert cagr5 is None
        assert calc_growth_windows(_series((2023, 1.0))) == (None, None)

    def test_prefers_cagr5(self):
        safe = Fundamentals(payout_ratio=0.5)
        assert calc_safe_growth(0.05, 0.08, safe, streak=10) == pytest.approx(0.05)
        assert calc_safe_growth(None, 0.08, safe, streak=10) == pytest.approx(0.08)
        assert calc_safe_growth(None, None, safe, streak=10) == 0.0

    def test_clamped(self):
        safe = Fundamentals(payout_ratio=0.5)
        assert calc_safe_growth(0.40, None, safe, streak=10) == pytest.approx(0.15)
        assert calc_safe_growth(-0.40, None, safe, streak=10) == pytest.approx(-0.10)

    def test_high_eps_payout_caps_at_zero(self):
        risky = Fundamentals(payout_ratio=0.9)
        assert calc_safe_growth(0.08, None, risky, streak=10) == 0.0

    def test_high_fcf_payout_caps_at_zero(self):
        risky = Fundamentals(
            operating_cash_flow=1000, capital_expenditure=500, cash_dividends_paid=600
        )
        assert calc_safe_growth(0.08, None, risky, streak=10) == 0.0

    def test_short_streak_caps_at_zero(self):
        assert calc_safe_growth(0.08, None, Fundamentals(), streak=2) == 0.0

    def test_negative_growth_kept_when_risky(self):
        assert calc_safe_growth(-0.05, None, Fundamentals(payout_ratio=0.9), streak=1) == pytest.approx(-0.05)

    def test_forward_dividend_and_yield(self):
        forward = calc_forward_dividend(2.0, 0.05)
        assert forward == pytest.approx(2.1)
        assert calc_yield(forward, 70.0) == pytest.approx(0.03)

    def test_yield_requires_price(self):
        assert calc_yield(2.0, 0) is None
        assert calc_yield(2.0, None) is None


class TestGordonGrowth:
    """Tests for calc_gordon_growth."""

    def test_fair_value(self):
        assert calc_gordon_growth(4.12, 72.50, 0.09, 0.02) == pytest.approx(58.857, abs=0.01)

    def test_growth_clamped_to_six_percent(self):
        """A 12% growth estimate is valued at 6%."""
        assert calc_gordon_growth(2.0, 50.0, 0.10, 0.12) == pytest.approx(50.0)

    def test_required_return_not_above_growth(self):
        assert calc_gordon_growth(2.0, 50.0, 0.05, 0.06) is None
        assert calc_gordon_growth(2.0, 50.0, 0.06, 0.06) is None

    def test_missing_inputs(self):
        assert calc_gordon_growth(2.0, 0, 0.09, 0.02) is None
        assert calc_gordon_growth(None, 50.0, 0.09, 0.02) is None
