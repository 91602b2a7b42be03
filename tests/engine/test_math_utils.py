"""Tests for shared numeric helpers."""

import math

import pytest

from divvy.data.models import AnnualDividendPoint
from divvy.engine.math_utils import calc_cagr, clamp, is_valid_number, safe_sum


class TestClamp:
    """Tests for clamp."""

    def test_within_range(self):
        assert clamp(0.5, 0, 1) == 0.5

    def test_below_and_above(self):
        assert clamp(-3, 0, 1) == 0
        assert clamp(7, 0, 1) == 1


class TestIsValidNumber:
    """Tests for is_valid_number."""

    @pytest.mark.parametrize("value", [0, 1.5, -2])
    def test_finite_numbers(self, value):
        assert is_valid_number(value) is True

    @pytest.mark.parametrize("value", [None, math.nan, math.inf, "1.0", True])
    def test_rejects_non_numbers(self, value):
        assert is_valid_number(value) is False


class TestSafeSum:
    """Tests for safe_sum."""

    def test_skips_unknown_values(self):
        assert safe_sum([1.0, None, math.nan, 2.5, math.inf]) == 3.5

    def test_empty(self):
        assert safe_sum([]) == 0


class TestCagr:
    """Tests for calc_cagr."""

    def test_basic_growth(self):
        """Test 10% compound growth over two years."""
        series = [AnnualDividendPoint(2020, 1.0), AnnualDividendPoint(2022, 1.21)]
        assert calc_cagr(series) == pytest.approx(0.10)

    def test_ignores_non_positive_points(self):
        series = [
            AnnualDividendPoint(2019, 0.0),
            AnnualDividendPoint(2020, 1.0),
            AnnualDividendPoint(2021, 1.1),
            AnnualDividendPoint(2022, 1.21),
        ]
        assert calc_cagr(series) == pytest.approx(0.10)

    def test_requires_two_positive_points(self):
        assert calc_cagr([AnnualDividendPoint(2020, 1.0)]) is None
        assert calc_cagr([]) is None

    def test_requires_two_year_span(self):
        """Adjacent years are too short a span for a CAGR."""
        series = [AnnualDividendPoint(2021, 1.0), AnnualDividendPoint(2022, 1.1)]
        assert calc_cagr(series) is None

    def test_decline(self):
        series = [AnnualDividendPoint(2020, 1.0), AnnualDividendPoint(2022, 0.81)]
        assert calc_cagr(series) == pytest.approx(-0.10)
