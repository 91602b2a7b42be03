"""
Elite Command - known long-streak dividend payers
"""

import click

from divvy.engine.dividend.elite import DIVIDEND_ARISTOCRATS, DIVIDEND_KINGS


@click.command()
@click.option(
    "--category",
    "-c",
    type=click.Choice(["king", "aristocrat", "all"], case_sensitive=False),
    default="all",
    help="Filter by category",
)
def elite(category: str) -> None:
    """List dividend kings and aristocrats used for streak validation"""
    stocks = []
    if category.lower() in ("king", "all"):
        stocks.extend(DIVIDEND_KINGS)
    if category.lower() in ("aristocrat", "all"):
        stocks.extend(DIVIDEND_ARISTOCRATS)

    stocks.sort(key=lambda s: (-s.years_of_increases, s.ticker))

    click.echo(f" {'Ticker':<7} {'Years':>5}  {'Category':<11} Name")
    click.echo("-" * 60)
    for stock in stocks:
        click.echo(f" {stock.ticker:<7} {stock.years_of_increases:>5}  {stock.category:<11} {stock.name}")
    click.echo()
    click.echo(f" {len(stocks)} stocks")
