"""
CLI Commands - command line subcommands
"""

from divvy.business.cli.commands.analyze import analyze
from divvy.business.cli.commands.elite import elite
from divvy.business.cli.commands.health import health
from divvy.business.cli.commands.history import history

__all__ = ["analyze", "history", "elite", "health"]
