"""
Business Layer CLI

Commands:
- analyze: dividend analysis of one or more tickers
- history: cached analyses of a ticker
- elite: known long-streak payers
- health: provider probes
"""

from divvy.business.cli.main import cli

__all__ = ["cli"]
