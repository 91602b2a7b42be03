"""
History Command - cached analyses of a ticker
"""

import json
import logging
import sys

import click

from divvy.business.config import validate_ticker
from divvy.data.cache import AnalysisCache, SupabaseClient
from divvy.data.errors import ValidationError

logger = logging.getLogger(__name__)


@click.command()
@click.argument("ticker")
@click.option("--limit", "-n", type=int, default=10, show_default=True, help="Number of analyses")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
def history(ticker: str, limit: int, output: str, verbose: bool) -> None:
    """Show past analyses of a ticker from the cache

    \b
    Examples:
      divvy history KO
      divvy history KO -n 30 -o json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        symbol = validate_ticker(ticker)
    except ValidationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(2)

    cache = AnalysisCache(SupabaseClient.from_env())
    if not cache.is_available:
        click.echo("❌ Cache unavailable: set SUPABASE_URL and SUPABASE_KEY", err=True)
        sys.exit(1)

    records = cache.get_history(symbol, limit=limit)

    if output == "json":
        rows = [
            {
                "id": record.id,
                "options_hash": record.options_hash,
                "observed_at": record.observed_at.isoformat(),
                "analysis": record.raw.get("analysis"),
                "options": record.raw.get("options"),
            }
            for record in records
        ]
        click.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return

    if not records:
        click.echo(f"No cached analyses for {symbol}")
        return

    click.echo()
    click.echo(f" 📜 {symbol} - {len(records)} cached analyses")
    click.echo("-" * 64)
    click.echo(f" {'Observed':<20} {'Score':>5} {'Price':>10} {'Fair Value':>11} {'Hash':>16}")
    for record in records:
        analysis = record.raw.get("analysis") or {}
        price = (analysis.get("quote") or {}).get("price")
        fair = analysis.get("fair_value")
        click.echo(
            f" {record.observed_at:%Y-%m-%d %H:%M:%S}  "
            f"{analysis.get('total_score', '-'):>5} "
            f"{'N/A' if price is None else f'{price:.2f}':>10} "
            f"{'N/A' if fair is None else f'{fair:.2f}':>11} "
            f"{record.options_hash:>16}"
        )
