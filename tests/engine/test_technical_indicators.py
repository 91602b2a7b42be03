"""Tests for EMA, MACD and RSI calculations."""

import math

import pytest

from divvy.data.models import EmaSnapshot, MacdSnapshot, RsiSnapshot
from divvy.engine.technical import (
    analyze_ema_trend,
    calc_ema,
    calc_ema_series,
    calc_ema_snapshot,
    calc_macd,
    calc_rsi,
    get_rsi_zone,
    interpret_macd,
    interpret_rsi,
)


class TestEMA:
    """Tests for exponential moving averages."""

    def test_series_length_and_seed(self):
        """First period-1 values are NaN, then the seed is the simple mean."""
        series = calc_ema_series([1, 2, 3, 4, 5], period=3)
        assert len(series) == 5
        assert math.isnan(series[0]) and math.isnan(series[1])
        assert series[2] == 2.0

    def test_smoothing(self):
        """k = 2/(period+1) = 0.5 for period 3."""
        series = calc_ema_series([1, 2, 3, 4, 5], period=3)
        assert series[3] == pytest.approx(3.0)
        assert series[4] == pytest.approx(4.0)

    def test_insufficient_data(self):
        assert calc_ema_series([1, 2], period=3) == []
        assert calc_ema([1, 2], period=3) is None

    def test_constant_prices(self):
        assert calc_ema([10.0] * 30, period=20) == pytest.approx(10.0)

    def test_snapshot_complete(self):
        prices = [100 + i * 0.5 for i in range(250)]
        snapshot = calc_ema_snapshot(prices)
        assert snapshot.is_complete
        # Shorter averages track a rising price more closely
        assert snapshot.ema20 > snapshot.ema50 > snapshot.ema200

    def test_snapshot_short_history_is_unavailable(self):
        """150 closes cannot support EMA200, so no EMA is reported."""
        snapshot = calc_ema_snapshot([100.0 + i for i in range(150)])
        assert snapshot == EmaSnapshot()
        assert not snapshot.is_complete

    def test_snapshot_custom_periods(self):
        snapshot = calc_ema_snapshot([float(i) for i in range(1, 11)], periods=(2, 3, 5))
        assert snapshot.is_complete


class TestEmaTrend:
    """Tests for analyze_ema_trend."""

    def test_price_above_all(self):
        result = analyze_ema_trend(110, EmaSnapshot(ema20=105, ema50=100, ema200=90))
        assert result["trend_strength"] == "strong_bullish"
        assert result["concerns"] == []

    def test_price_below_all(self):
        result = analyze_ema_trend(80, EmaSnapshot(ema20=105, ema50=100, ema200=90))
        assert result["trend_strength"] == "strong_bearish"
        assert result["under_ema200"] is True
        assert len(result["concerns"]) == 3

    def test_missing_data(self):
        result = analyze_ema_trend(100, EmaSnapshot())
        assert result["concerns"] == ["EMA data unavailable"]


class TestMACD:
    """Tests for MACD calculation."""

    def test_insufficient_data(self):
        """Fewer than slow + signal prices gives an empty reading."""
        assert calc_macd([100.0] * 34) == MacdSnapshot()

    def test_minimum_length(self):
        macd = calc_macd([100.0 + i for i in range(35)])
        assert macd.is_available

    def test_flat_prices(self):
        macd = calc_macd([50.0] * 60)
        assert macd.macd_line == pytest.approx(0.0)
        assert macd.signal_line == pytest.approx(0.0)
        assert macd.histogram == pytest.approx(0.0)

    def test_uptrend_is_positive(self):
        macd = calc_macd([100 * 1.01**i for i in range(100)])
        assert macd.macd_line > 0
        assert macd.histogram == pytest.approx(macd.macd_line - macd.signal_line)

    def test_interpret_bullish(self):
        result = interpret_macd(MacdSnapshot(macd_line=2.0, signal_line=1.0, histogram=1.0))
        assert result["signal"] == "bullish"
        assert result["strength"] == "strong"

    def test_interpret_crossover(self):
        previous = MacdSnapshot(macd_line=1.0, signal_line=1.2, histogram=-0.2)
        current = MacdSnapshot(macd_line=1.3, signal_line=1.2, histogram=0.1)
        assert interpret_macd(current, previous)["crossover"] == "bullish_crossover"

    def test_interpret_unavailable(self):
        result = interpret_macd(MacdSnapshot())
        assert result["signal"] == "neutral"
        assert result["concerns"] == ["MACD data unavailable"]


class TestRSI:
    """Tests for RSI calculation."""

    def test_insufficient_data(self):
        snapshot = calc_rsi([1.0] * 14, period=14)
        assert snapshot.rsi is None
        assert not snapshot.is_available

    def test_no_losses_is_100(self):
        assert calc_rsi([100 + i for i in range(20)]).rsi == 100.0

    def test_strong_downtrend(self):
        rsi = calc_rsi([100 - i for i in range(20)]).rsi
        assert rsi == 0.0

    def test_bounded_and_rounded(self):
        prices = [44, 44.5, 44, 43.5, 44, 44.5, 44.8, 44.3, 44.7, 45,
                  45.2, 44.8, 45.1, 45.5, 45.2, 45.0, 45.6]
        rsi = calc_rsi(prices).rsi
        assert 0 <= rsi <= 100
        assert rsi == round(rsi, 2)

    def test_equal_gains_and_losses(self):
        prices = [10, 11] * 8
        rsi = calc_rsi(prices, period=2).rsi
        assert 0 < rsi < 100

    @pytest.mark.parametrize(
        "value,zone",
        [
            (85, "extreme_overbought"),
            (72, "overbought"),
            (50, "neutral"),
            (25, "oversold"),
            (15, "extreme_oversold"),
            (None, "unknown"),
        ],
    )
    def test_zones(self, value, zone):
        assert get_rsi_zone(value) == zone

    def test_interpret_rising_into_overbought(self):
        result = interpret_rsi(RsiSnapshot(rsi=75.0), previous_rsi=65.0)
        assert result["trend"] == "rising"
        assert len(result["concerns"]) == 2
