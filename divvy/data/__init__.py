"""Data layer: models, providers, cache and quality checks."""
