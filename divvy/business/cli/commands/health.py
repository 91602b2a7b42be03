"""
Health Command - provider availability and latency
"""

import json
import logging
import sys

import click

from divvy.business.analysis import DividendAnalyzer
from divvy.business.config import AnalyzerConfig
from divvy.data.models import DataType, ProviderChoice


@click.command()
@click.option("--symbol", "-S", default="AAPL", show_default=True, help="Symbol used for probing")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
def health(symbol: str, output: str, verbose: bool) -> None:
    """Probe every configured data provider"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    analyzer = DividendAnalyzer.from_config(AnalyzerConfig.load())
    provider = analyzer.provider
    checks = provider.health_check(symbol)
    routing = [
        provider.get_routing_info(data_type, choice)
        for data_type in DataType
        for choice in ProviderChoice
    ]

    if output == "json":
        click.echo(
            json.dumps(
                {"providers": [c.to_dict() for c in checks], "routing": routing},
                indent=2,
            )
        )
    else:
        click.echo(f" {'Provider':<15} {'Status':<8} {'Latency':>9}  Error")
        click.echo("-" * 60)
        for check in checks:
            status = "✅ up" if check.available else "❌ down"
            click.echo(
                f" {check.provider:<15} {status:<8} {check.latency:>8.2f}s  {check.error or ''}"
            )
        click.echo()
        click.echo(" Routing")
        for info in routing:
            click.echo(
                f"   {info['data_type']:<13} {info['provider_choice']:<10} "
                f"-> {', '.join(info['available_providers']) or '(none)'}"
            )

    sys.exit(0 if checks and all(c.available for c in checks) else 1)
