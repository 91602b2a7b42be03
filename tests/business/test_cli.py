"""Tests for the divvy command line."""

import json

import pytest
from click.testing import CliRunner
from conftest import NOW, FakeProvider, price_series, quarterly_events, rising_prices

from divvy.business.analysis import DividendAnalyzer
from divvy.business.cli import cli
from divvy.data.errors import TickerNotFoundError
from divvy.data.models import Quote
from divvy.data.providers import UnifiedDataProvider


class _Provider(FakeProvider):
    def get_quote(self, symbol):
        if symbol == "NOPE":
            raise TickerNotFoundError(symbol)
        return Quote(symbol=symbol, price=40.0, name=f"{symbol} Inc", source="yahoo")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_analyzer(monkeypatch, ko_fundamentals):
    yahoo = _Provider(
        dividends=quarterly_events(2018, 2023, {y: 1.0 + 0.1 * (y - 2018) for y in range(2018, 2024)}),
        fundamentals=ko_fundamentals,
        prices=price_series("X", rising_prices(260)),
    )
    provider = UnifiedDataProvider(
        yahoo_provider=yahoo,
        alpha_vantage_provider=FakeProvider(name="alpha_vantage", available=False),
        sleep=lambda seconds: None,
    )
    analyzer = DividendAnalyzer(provider, clock=lambda: NOW)
    monkeypatch.setattr(
        DividendAnalyzer, "from_config", staticmethod(lambda config, supabase_client: analyzer)
    )
    return analyzer


class TestAnalyzeCommand:
    """Tests for `divvy analyze`."""

    def test_text_report(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "acme", "--no-cache"])
        assert result.exit_code == 0
        assert "ACME - ACME Inc" in result.output
        assert "Fair value:" in result.output
        assert "Sources: " in result.output

    def test_json_report(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "ACME", "--no-cache", "-o", "json"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["ticker"] == "ACME"
        assert payload["analyzed_at"] == NOW.isoformat()

    def test_unknown_ticker(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "NOPE", "--no-cache"])
        assert result.exit_code == 1
        assert "TICKER_NOT_FOUND" in result.output

    def test_invalid_years(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "ACME", "--no-cache", "-y", "80"])
        assert result.exit_code == 2
        assert "Years must be an integer" in result.output

    def test_batch_ranking(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "ACME", "PEER", "NOPE", "--no-cache", "-o", "json"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert {r["ticker"] for r in payload["results"]} == {"ACME", "PEER"}
        assert list(payload["errors"]) == ["NOPE"]

    def test_batch_all_failed(self, runner, fake_analyzer):
        result = runner.invoke(cli, ["analyze", "NOPE", "nope", "--no-cache"])
        # Duplicates collapse to one ticker, which still goes through the batch path
        assert result.exit_code == 1
        assert "Failed" in result.output


class TestEliteCommand:
    """Tests for `divvy elite`."""

    def test_kings(self, runner):
        result = runner.invoke(cli, ["elite", "-c", "king"])
        assert result.exit_code == 0
        assert "KO" in result.output
        assert "aristocrat" not in result.output
        assert "15 stocks" in result.output

    def test_all_sorted_by_years(self, runner):
        result = runner.invoke(cli, ["elite"])
        lines = [line for line in result.output.splitlines() if line.startswith(" PG ")]
        assert lines
        assert result.output.index(" PG ") < result.output.index(" KO ")


class TestHistoryCommand:
    """Tests for `divvy history`."""

    def test_requires_store(self, runner, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        monkeypatch.setattr("divvy.data.cache.supabase_client.load_dotenv", lambda: None)

        result = runner.invoke(cli, ["history", "KO"])
        assert result.exit_code == 1
        assert "Cache unavailable" in result.output

    def test_invalid_ticker(self, runner):
        result = runner.invoke(cli, ["history", "bad ticker"])
        assert result.exit_code == 2
