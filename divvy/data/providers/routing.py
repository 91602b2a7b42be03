"""Routing configuration for data providers.

Decides which providers serve a data type for the caller's provider choice.
Rules are evaluated in order and the first match wins.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from divvy.data.models.enums import DataType, ProviderChoice

logger = logging.getLogger(__name__)

BULK_PROVIDER = "yahoo"
PRECISION_PROVIDER = "alpha_vantage"


@dataclass
class RoutingRule:
    """A single routing rule."""

    providers: list[str] = field(default_factory=list)
    provider_choice: str | list[str] | None = None
    data_type: str | list[str] | None = None

    @staticmethod
    def _field_matches(expected: str | list[str] | None, actual: str) -> bool:
        if expected is None:
            return True
        if isinstance(expected, list):
            return actual in expected
        return actual == expected

    def matches(self, data_type: DataType, choice: ProviderChoice) -> bool:
        """Check if this rule matches the given data type and provider choice."""
        return self._field_matches(self.data_type, data_type.value) and self._field_matches(
            self.provider_choice, choice.value
        )


class RoutingConfig:
    """Routing configuration manager.

    Loads routing rules from YAML config file or uses default configuration.

    YAML format:
        routing_rules:
          - data_type: quote
            providers: [yahoo]
          - provider_choice: [precision, auto]
            providers: [alpha_vantage, yahoo]
          - providers: [yahoo]
    """

    def __init__(self, config_path: str | Path | None = None):
        """Initialize routing configuration.

        Args:
            config_path: Path to YAML config file. If None, uses default config.
        """
        self.config_path = Path(config_path) if config_path else None
        self.rules: list[RoutingRule] = []
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from file or use defaults."""
        if self.config_path and self.config_path.exists():
            logger.info(f"Loading routing config from {self.config_path}")
            self._load_from_file()
        else:
            logger.debug("Using default routing configuration")
            self._load_defaults()

    def _load_from_file(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}

            self.rules = [
                RoutingRule(
                    providers=rule_config.get("providers", []),
                    provider_choice=rule_config.get("provider_choice"),
                    data_type=rule_config.get("data_type"),
                )
                for rule_config in config.get("routing_rules", [])
            ]
        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.error(f"Failed to load routing config: {e}, using defaults")
            self._load_defaults()

    def _load_defaults(self) -> None:
        """Load default routing configuration."""
        self.rules = [
            # Quotes → Yahoo only (the precision API has no quote endpoint)
            RoutingRule(data_type="quote", providers=[BULK_PROVIDER]),
            # Precision/auto → Alpha Vantage first, Yahoo fallback.
            # "auto" degrades to Yahoo only when Alpha Vantage is not configured.
            RoutingRule(
                provider_choice=["precision", "auto"],
                providers=[PRECISION_PROVIDER, BULK_PROVIDER],
            ),
            # Default → Yahoo
            RoutingRule(providers=[BULK_PROVIDER]),
        ]

    def select_providers(self, data_type: DataType, choice: ProviderChoice) -> list[str]:
        """Select providers for a data type.

        Returns:
            List of provider names in priority order.
        """
        for rule in self.rules:
            if rule.matches(data_type, choice):
                logger.debug(f"Matched rule for {data_type.value}/{choice.value}: {rule.providers}")
                return list(rule.providers)

        logger.debug(f"No rule matched for {data_type.value}/{choice.value}, using yahoo")
        return [BULK_PROVIDER]

    def to_dict(self) -> dict[str, Any]:
        """Export configuration as dictionary (for debugging/logging)."""
        return {
            "routing_rules": [
                {
                    "provider_choice": r.provider_choice,
                    "data_type": r.data_type,
                    "providers": r.providers,
                }
                for r in self.rules
            ],
        }
