"""
Analyze Command - dividend analysis

Runs the full analysis for one or more tickers and prints a report.
"""

import json
import logging
import sys

import click

from divvy.business.analysis import BatchAnalysisResult, DividendAnalyzer
from divvy.business.config import AnalysisOptions, AnalyzerConfig
from divvy.data.cache import SupabaseClient
from divvy.data.errors import DivvyError, ValidationError
from divvy.data.models import AnalysisResult
from divvy.engine.technical import analyze_ema_trend, interpret_macd, interpret_rsi

logger = logging.getLogger(__name__)


@click.command()
@click.argument("tickers", nargs=-1, required=True)
@click.option(
    "--years",
    "-y",
    type=int,
    default=15,
    show_default=True,
    help="Dividend history depth in years (1-50)",
)
@click.option(
    "--required-return",
    "-r",
    type=float,
    default=0.09,
    show_default=True,
    help="Required annual return for the fair value",
)
@click.option(
    "--provider",
    "-p",
    type=click.Choice(["default", "precision", "auto"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Provider preference: default (Yahoo), precision (Alpha Vantage first), auto",
)
@click.option("--no-cache", is_flag=True, help="Neither read nor write the analysis cache")
@click.option("--fresh", is_flag=True, help="Skip the cache read, still save the result")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--config", "config_name", default="default", help="Name of config/analysis/<name>.yaml")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
def analyze(
    tickers: tuple[str, ...],
    years: int,
    required_return: float,
    provider: str,
    no_cache: bool,
    fresh: bool,
    output: str,
    config_name: str,
    verbose: bool,
) -> None:
    """Analyze dividend sustainability

    \b
    Examples:
      # Single ticker
      divvy analyze KO

      # 20 years of history with Alpha Vantage first
      divvy analyze JNJ -y 20 -p precision

      # Several tickers, ranked by score, as JSON
      divvy analyze KO PEP PG -o json
    """
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        options = AnalysisOptions(
            years=years,
            required_return=required_return,
            provider=provider,
            save_to_cache=not no_cache,
            force_fresh=fresh,
        ).validate()
    except ValidationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(2)

    config = AnalyzerConfig.load(config_name)
    supabase = None if no_cache else SupabaseClient.from_env()
    analyzer = DividendAnalyzer.from_config(config, supabase)

    if len(tickers) == 1:
        try:
            result = analyzer.analyze(tickers[0], options)
        except DivvyError as e:
            click.echo(f"❌ {tickers[0]}: {e} [{e.code}]", err=True)
            sys.exit(1)

        if output == "json":
            click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        else:
            _output_text(result)
        return

    batch = analyzer.analyze_many(tickers, options)
    if output == "json":
        click.echo(json.dumps(_batch_to_dict(batch), indent=2, ensure_ascii=False))
    else:
        _output_batch_text(batch)

    sys.exit(0 if batch.results else 1)


def _pct(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.2%}"


def _money(value: float | None, currency: str = "USD") -> str:
    return "N/A" if value is None else f"{value:,.2f} {currency}"


def _num(value: float | None, digits: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{digits}f}"


def _output_text(result: AnalysisResult) -> None:
    """Text report for one analysis."""
    quote = result.quote
    currency = quote.currency
    f = result.fundamentals

    click.echo()
    click.echo("=" * 60)
    click.echo(f" 📊 {result.ticker} - {quote.name or result.ticker}")
    click.echo(f"    Price: {_money(quote.price, currency)}    Score: {result.total_score}/100")
    click.echo("=" * 60)

    click.echo()
    click.echo(" Dividends")
    click.echo(f"   TTM:        {_money(result.ttm_dividends, currency)} (yield {_pct(result.ttm_yield)})")
    click.echo(
        f"   Forward:    {_money(result.forward_dividend, currency)} "
        f"(yield {_pct(result.forward_yield)})"
    )
    streak_line = f"   Streak:     {result.streak} years"
    if result.streak != result.raw_streak:
        streak_line += f" (computed {result.raw_streak})"
    click.echo(streak_line)
    click.echo(
        f"   Growth:     CAGR3 {_pct(result.cagr3)} | CAGR5 {_pct(result.cagr5)} | "
        f"safe {_pct(result.safe_growth)}"
    )

    click.echo()
    click.echo(" Valuation")
    click.echo(
        f"   Fair value: {_money(result.fair_value, currency)} "
        f"(required return {result.required_return:.1%})"
    )
    if result.fair_value is not None and quote.price > 0:
        upside = result.fair_value / quote.price - 1
        click.echo(f"   Upside:     {upside:+.1%}")

    click.echo()
    click.echo(" Fundamentals")
    click.echo(f"   EPS payout: {_pct(f.eps_payout_ratio)}")
    click.echo(f"   FCF payout: {_pct(f.fcf_payout_ratio)}")
    click.echo(f"   FCF cover:  {_num(f.fcf_coverage)}x")

    click.echo()
    click.echo(" Technical")
    click.echo(
        f"   EMA20/50/200: {_num(result.ema.ema20)} / {_num(result.ema.ema50)} / "
        f"{_num(result.ema.ema200)}"
    )
    macd_view = interpret_macd(result.macd)
    click.echo(
        f"   MACD:       {_num(result.macd.macd_line, 3)} "
        f"(signal {_num(result.macd.signal_line, 3)}, {macd_view['signal']})"
    )
    rsi_view = interpret_rsi(result.rsi)
    click.echo(f"   RSI({result.rsi.period}):    {_num(result.rsi.rsi)} ({rsi_view['zone']})")

    click.echo()
    click.echo(" Scores")
    for label, value in result.scores.to_dict().items():
        click.echo(f"   {label:<8} {value:6.1f}")

    concerns = (
        analyze_ema_trend(quote.price, result.ema)["concerns"]
        + macd_view["concerns"]
        + rsi_view["concerns"]
    )
    if concerns:
        click.echo()
        click.echo(" Technical notes")
        for concern in concerns:
            click.echo(f"   - {concern}")

    if result.warnings:
        click.echo()
        click.echo(" ⚠️  Warnings")
        for warning in result.warnings:
            click.echo(f"   - {warning}")

    if result.sources:
        sources = ", ".join(f"{k}={v}" for k, v in sorted(result.sources.items()))
        click.echo()
        click.echo(f" Sources: {sources}")
    click.echo(f" Analyzed at: {result.analyzed_at.isoformat()}")


def _output_batch_text(batch: BatchAnalysisResult) -> None:
    """Ranked summary table for several analyses."""
    click.echo()
    click.echo("=" * 72)
    click.echo(f" 📊 Dividend analysis - {batch.success_count} analyzed, {len(batch.errors)} failed")
    click.echo("=" * 72)
    click.echo(
        f" {'Ticker':<8} {'Score':>5} {'Price':>10} {'Fwd Yield':>9} "
        f"{'Fair Value':>11} {'Streak':>6} {'Safe g':>7}"
    )
    click.echo("-" * 72)
    for result in batch.ranked():
        fair = "N/A" if result.fair_value is None else f"{result.fair_value:.2f}"
        click.echo(
            f" {result.ticker:<8} {result.total_score:>5} {result.quote.price:>10.2f} "
            f"{_pct(result.forward_yield):>9} {fair:>11} {result.streak:>6} "
            f"{result.safe_growth:>7.1%}"
        )

    if batch.errors:
        click.echo()
        click.echo(" ❌ Failed")
        for symbol, error in sorted(batch.errors.items()):
            click.echo(f"   {symbol}: {error}")


def _batch_to_dict(batch: BatchAnalysisResult) -> dict:
    return {
        "results": [result.to_dict() for result in batch.ranked()],
        "errors": dict(batch.errors),
    }
