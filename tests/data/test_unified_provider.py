"""Tests for routing and the unified provider."""

import pytest

from conftest import FakeProvider, price_series, script
from divvy.data.errors import (
    DataSourceError,
    NetworkError,
    RateLimitError,
    TickerNotFoundError,
)
from divvy.data.models import DataType, ProviderChoice, Quote
from divvy.data.providers import (
    CircuitBreakerRegistry,
    RetryPolicy,
    RoutingConfig,
    UnifiedDataProvider,
)

NO_JITTER = RetryPolicy(max_attempts=3, base_delay=1.0, jitter_factor=0.0)


class TestRoutingConfig:
    """Tests for RoutingConfig."""

    @pytest.fixture
    def routing(self):
        return RoutingConfig()

    def test_quotes_always_yahoo(self, routing):
        for choice in ProviderChoice:
            assert routing.select_providers(DataType.QUOTE, choice) == ["yahoo"]

    def test_precision_and_auto_prefer_alpha_vantage(self, routing):
        for choice in (ProviderChoice.PRECISION, ProviderChoice.AUTO):
            assert routing.select_providers(DataType.DIVIDENDS, choice) == ["alpha_vantage", "yahoo"]

    def test_default_is_yahoo(self, routing):
        assert routing.select_providers(DataType.FUNDAMENTALS, ProviderChoice.DEFAULT) == ["yahoo"]

    def test_load_from_yaml(self, tmp_path):
        path = tmp_path / "routing.yaml"
        path.write_text(
            "routing_rules:\n"
            "  - data_type: [dividends, price_series]\n"
            "    providers: [alpha_vantage]\n"
            "  - providers: [yahoo]\n"
        )
        routing = RoutingConfig(path)
        assert routing.select_providers(DataType.DIVIDENDS, ProviderChoice.DEFAULT) == ["alpha_vantage"]
        assert routing.select_providers(DataType.QUOTE, ProviderChoice.AUTO) == ["yahoo"]
        assert len(routing.to_dict()["routing_rules"]) == 2

    def test_missing_file_uses_defaults(self, tmp_path):
        routing = RoutingConfig(tmp_path / "missing.yaml")
        assert len(routing.rules) == 3


def _unified(yahoo, alpha_vantage, **kwargs):
    sleeps = []
    provider = UnifiedDataProvider(
        yahoo_provider=yahoo,
        alpha_vantage_provider=alpha_vantage,
        retry_policies={"yahoo": NO_JITTER, "alpha_vantage": NO_JITTER},
        sleep=sleeps.append,
        **kwargs,
    )
    return provider, sleeps


class TestUnifiedDataProvider:
    """Tests for fallback, retry and circuit breaking."""

    @pytest.fixture
    def quote(self):
        return Quote(symbol="KO", price=60.0, name="Coca-Cola", source="yahoo")

    def test_quote_from_yahoo(self, quote):
        yahoo = FakeProvider("yahoo", quote=quote)
        provider, _ = _unified(yahoo, FakeProvider("alpha_vantage"))

        acquired = provider.get_quote("KO", ProviderChoice.PRECISION)
        assert acquired.value == quote
        assert acquired.source == "yahoo"
        assert not acquired.used_fallback

    def test_precision_first(self):
        series = price_series("KO", [1.0, 2.0], source="alpha_vantage")
        alpha_vantage = FakeProvider("alpha_vantage", prices=series)
        yahoo = FakeProvider("yahoo", prices=price_series("KO", [9.0]))
        provider, _ = _unified(yahoo, alpha_vantage)

        acquired = provider.get_price_series("KO", 2, ProviderChoice.PRECISION)
        assert acquired.source == "alpha_vantage"
        assert yahoo.calls == []

    def test_auto_skips_unconfigured_precision(self):
        alpha_vantage = FakeProvider("alpha_vantage", available=False)
        yahoo = FakeProvider("yahoo", dividends=[])
        provider, _ = _unified(yahoo, alpha_vantage)

        acquired = provider.get_dividend_events("KO", 10, ProviderChoice.AUTO)
        assert acquired.source == "yahoo"
        assert not acquired.used_fallback
        assert alpha_vantage.calls == []

    def test_falls_back_on_failure(self):
        alpha_vantage = FakeProvider("alpha_vantage", dividends=TickerNotFoundError("KO"))
        yahoo = FakeProvider("yahoo", dividends=[])
        provider, _ = _unified(yahoo, alpha_vantage)

        acquired = provider.get_dividend_events("KO", 10, ProviderChoice.PRECISION)
        assert acquired.source == "yahoo"
        assert acquired.used_fallback
        assert acquired.fallback_errors[0].startswith("alpha_vantage:")

    def test_retries_before_falling_back(self):
        alpha_vantage = FakeProvider(
            "alpha_vantage", dividends=script(NetworkError("reset"), [])
        )
        provider, sleeps = _unified(FakeProvider("yahoo"), alpha_vantage)

        acquired = provider.get_dividend_events("KO", 10, ProviderChoice.PRECISION)
        assert acquired.source == "alpha_vantage"
        assert alpha_vantage.calls == ["dividends", "dividends"]
        assert sleeps == [1.0]

    def test_precision_rate_limit_falls_back_immediately(self):
        """Default policies do not retry daily quota errors on the precision API."""
        alpha_vantage = FakeProvider("alpha_vantage", fundamentals=RateLimitError("quota"))
        yahoo = FakeProvider("yahoo", fundamentals="yahoo fundamentals")
        provider = UnifiedDataProvider(
            yahoo_provider=yahoo, alpha_vantage_provider=alpha_vantage, sleep=lambda s: None
        )

        acquired = provider.get_fundamentals("KO", 5, ProviderChoice.PRECISION)
        assert acquired.value == "yahoo fundamentals"
        assert alpha_vantage.calls == ["fundamentals"]

    def test_all_fail_raises_most_specific(self):
        alpha_vantage = FakeProvider("alpha_vantage", dividends=TickerNotFoundError("XX"))
        yahoo = FakeProvider("yahoo", dividends=NetworkError("down"))
        provider, _ = _unified(yahoo, alpha_vantage)

        with pytest.raises(TickerNotFoundError):
            provider.get_dividend_events("XX", 10, ProviderChoice.PRECISION)

    def test_no_providers(self):
        provider, _ = _unified(
            FakeProvider("yahoo", available=False), FakeProvider("alpha_vantage", available=False)
        )
        with pytest.raises(DataSourceError) as exc_info:
            provider.get_quote("KO")
        assert exc_info.value.source == "routing"

    def test_unsupported_data_type_skipped(self, quote):
        alpha_vantage = FakeProvider(
            "alpha_vantage", quote=quote, data_types=frozenset({DataType.DIVIDENDS})
        )
        yahoo = FakeProvider("yahoo", fundamentals="yahoo")
        provider, _ = _unified(yahoo, alpha_vantage)

        assert provider.get_fundamentals("KO", 5, ProviderChoice.PRECISION).source == "yahoo"
        assert alpha_vantage.calls == []

    def test_open_breaker_skips_provider(self):
        alpha_vantage = FakeProvider(
            "alpha_vantage",
            prices=DataSourceError("malformed payload", source="alpha_vantage", retryable=False),
        )
        yahoo = FakeProvider("yahoo", prices=price_series("KO", [1.0]))
        breakers = CircuitBreakerRegistry(failure_threshold=2)
        provider, _ = _unified(yahoo, alpha_vantage, breakers=breakers)

        for _ in range(3):
            provider.get_price_series("KO", 2, ProviderChoice.PRECISION)

        # Third call never reached alpha_vantage
        assert alpha_vantage.calls == ["prices", "prices"]
        assert breakers.open_breakers() == ["alpha_vantage.price_series"]

    def test_breaker_shared_between_providers(self):
        breakers = CircuitBreakerRegistry(failure_threshold=1)
        first, _ = _unified(
            FakeProvider("yahoo", quote=DataSourceError("bad payload", source="yahoo", retryable=False)),
            FakeProvider("alpha_vantage"),
            breakers=breakers,
        )
        second, _ = _unified(
            FakeProvider("yahoo", quote=Quote("B", 1.0)), FakeProvider("alpha_vantage"), breakers=breakers
        )

        with pytest.raises(DataSourceError):
            first.get_quote("A")
        with pytest.raises(DataSourceError) as exc_info:
            second.get_quote("B")
        assert exc_info.value.source == "circuit_breaker"

    def test_unknown_tickers_do_not_open_breaker(self):
        breakers = CircuitBreakerRegistry(failure_threshold=2)
        provider, _ = _unified(
            FakeProvider("yahoo", quote=script(*[TickerNotFoundError("X")] * 5, Quote("KO", 60.0))),
            FakeProvider("alpha_vantage"),
            breakers=breakers,
        )

        for _ in range(5):
            with pytest.raises(TickerNotFoundError):
                provider.get_quote("X")

        assert breakers.open_breakers() == []
        assert provider.get_quote("KO").value.price == 60.0

    def test_routing_info(self):
        provider, _ = _unified(FakeProvider("yahoo"), FakeProvider("alpha_vantage", available=False))
        info = provider.get_routing_info(DataType.DIVIDENDS, ProviderChoice.AUTO)
        assert info["configured_providers"] == ["alpha_vantage", "yahoo"]
        assert info["available_providers"] == ["yahoo"]

    def test_health_check(self, quote):
        provider, _ = _unified(
            FakeProvider("yahoo", quote=quote), FakeProvider("alpha_vantage", available=False)
        )
        health = provider.health_check("KO")
        assert [h.provider for h in health] == ["yahoo"]
        assert health[0].available
