"""
CLI Main Entry Point

Command line tool built with Click.
"""

import click

from divvy.business.cli.commands.analyze import analyze
from divvy.business.cli.commands.elite import elite
from divvy.business.cli.commands.health import health
from divvy.business.cli.commands.history import history


@click.group()
@click.version_option(version="0.1.0", prog_name="divvy")
def cli() -> None:
    """Divvy - dividend sustainability analysis

    Analyzes dividend history, growth, fair value and price trend.
    """
    pass


cli.add_command(analyze)
cli.add_command(history)
cli.add_command(elite)
cli.add_command(health)


if __name__ == "__main__":
    cli()
