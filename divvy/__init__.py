"""Divvy - dividend sustainability analysis.

Layers:
- data/: market data models, providers with retry/fallback, analysis cache
- engine/: pure calculators (dividend streak/growth, technical indicators, scores)
- business/: configuration, the analysis orchestrator and the CLI
"""

__version__ = "0.1.0"
