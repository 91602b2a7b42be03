"""
Analysis Configuration - dividend analysis settings

Loads analyzer settings (retry, circuit breaker, cache, streak policy,
technical indicators, providers) from config/analysis/<name>.yaml and
validates per-call analysis options.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from divvy.data.errors import ErrorKind, ValidationError
from divvy.data.models.enums import ProviderChoice
from divvy.data.providers.retry import RetryPolicy
from divvy.engine.dividend.streak import StreakPolicy

TICKER_PATTERN = re.compile(r"^[A-Z0-9.\-]{1,10}$")

MIN_YEARS, MAX_YEARS = 1, 50
MIN_REQUIRED_RETURN, MAX_REQUIRED_RETURN = 0.001, 1.0


@dataclass
class RetryConfig:
    """Retry settings for one provider class."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    jitter_factor: float = 0.1
    retryable_kinds: list[str] = field(
        default_factory=lambda: ["network", "rate_limit", "data_source"]
    )

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            backoff_multiplier=self.backoff_multiplier,
            jitter_factor=self.jitter_factor,
            retryable_kinds=frozenset(ErrorKind(kind) for kind in self.retryable_kinds),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], defaults: "RetryConfig | None" = None) -> "RetryConfig":
        base = defaults or cls()
        return cls(
            max_attempts=data.get("max_attempts", base.max_attempts),
            base_delay=data.get("base_delay", base.base_delay),
            max_delay=data.get("max_delay", base.max_delay),
            backoff_multiplier=data.get("backoff_multiplier", base.backoff_multiplier),
            jitter_factor=data.get("jitter_factor", base.jitter_factor),
            retryable_kinds=list(data.get("retryable_kinds", base.retryable_kinds)),
        )


def _default_precision_retry() -> RetryConfig:
    # Precision rate limits are daily, so they fall back instead of retrying
    return RetryConfig(
        max_attempts=2,
        base_delay=2.0,
        max_delay=10.0,
        retryable_kinds=["network", "data_source"],
    )


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker settings shared by every provider operation."""

    failure_threshold: int = 5
    recovery_time: float = 60.0


@dataclass
class CacheConfig:
    """Analysis cache settings."""

    enabled: bool = True
    max_age_hours: float = 24.0


@dataclass
class TechnicalConfig:
    """Technical indicator settings."""

    ema_periods: tuple[int, int, int] = (20, 50, 200)
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    rsi_period: int = 14
    price_lookback_years: int = 2


@dataclass
class ProviderSettings:
    """Provider construction settings."""

    yahoo_rate_limit: float = 0.5
    alpha_vantage_daily_ceiling: int = 25
    alpha_vantage_rate_limit: float = 1.0
    request_timeout: float = 30.0
    routing_config: str | None = None


@dataclass
class AnalyzerConfig:
    """Dividend analyzer configuration."""

    retry: RetryConfig = field(default_factory=RetryConfig)
    precision_retry: RetryConfig = field(default_factory=_default_precision_retry)
    circuit_breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    streak: StreakPolicy = field(default_factory=StreakPolicy.standard)
    technical: TechnicalConfig = field(default_factory=TechnicalConfig)
    providers: ProviderSettings = field(default_factory=ProviderSettings)
    max_workers: int = 4

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AnalyzerConfig":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalyzerConfig":
        """Create configuration from a dictionary."""
        config = cls()

        if "retry" in data:
            config.retry = RetryConfig.from_dict(data["retry"])

        if "precision_retry" in data:
            config.precision_retry = RetryConfig.from_dict(
                data["precision_retry"], defaults=_default_precision_retry()
            )

        if "circuit_breaker" in data:
            cb = data["circuit_breaker"]
            config.circuit_breaker = CircuitBreakerConfig(
                failure_threshold=cb.get("failure_threshold", 5),
                recovery_time=cb.get("recovery_time", 60.0),
            )

        if "cache" in data:
            cache = data["cache"]
            config.cache = CacheConfig(
                enabled=cache.get("enabled", True),
                max_age_hours=cache.get("max_age_hours", 24.0),
            )

        if "streak" in data:
            streak = data["streak"]
            preset = StreakPolicy.from_name(streak.get("policy", "standard"))
            config.streak = StreakPolicy(
                name=preset.name,
                decline_tolerance=streak.get("decline_tolerance", preset.decline_tolerance),
                noise_threshold=streak.get("noise_threshold", preset.noise_threshold),
                recovery_lookahead=streak.get("recovery_lookahead", preset.recovery_lookahead),
            )

        if "technical" in data:
            tech = data["technical"]
            config.technical = TechnicalConfig(
                ema_periods=tuple(tech.get("ema_periods", [20, 50, 200])),
                macd_fast=tech.get("macd_fast", 12),
                macd_slow=tech.get("macd_slow", 26),
                macd_signal=tech.get("macd_signal", 9),
                rsi_period=tech.get("rsi_period", 14),
                price_lookback_years=tech.get("price_lookback_years", 2),
            )

        if "providers" in data:
            prov = data["providers"]
            config.providers = ProviderSettings(
                yahoo_rate_limit=prov.get("yahoo_rate_limit", 0.5),
                alpha_vantage_daily_ceiling=prov.get("alpha_vantage_daily_ceiling", 25),
                alpha_vantage_rate_limit=prov.get("alpha_vantage_rate_limit", 1.0),
                request_timeout=prov.get("request_timeout", 30.0),
                routing_config=prov.get("routing_config"),
            )

        if "max_workers" in data:
            config.max_workers = data["max_workers"]

        return config

    @classmethod
    def load(cls, name: str = "default") -> "AnalyzerConfig":
        """Load a named configuration, falling back to defaults."""
        config_dir = Path(__file__).parent.parent.parent.parent / "config" / "analysis"
        config_file = config_dir / f"{name}.yaml"
        if config_file.exists():
            return cls.from_yaml(config_file)
        return cls()


@dataclass
class AnalysisOptions:
    """Per-call analysis options.

    Attributes:
        years: Dividend history depth in years (1-50).
        required_return: Discount rate for the fair value (0.001-1.0).
        provider: Provider preference.
        save_to_cache: Read and write the analysis cache.
        force_fresh: Skip the cache read (the result is still saved).
    """

    years: int = 15
    required_return: float = 0.09
    provider: ProviderChoice = ProviderChoice.AUTO
    save_to_cache: bool = True
    force_fresh: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.provider, ProviderChoice):
            try:
                self.provider = ProviderChoice(str(self.provider).lower())
            except ValueError:
                choices = ", ".join(choice.value for choice in ProviderChoice)
                raise ValidationError(
                    f"Invalid provider '{self.provider}'. Must be one of: {choices}",
                    "provider",
                ) from None

    def validate(self) -> "AnalysisOptions":
        """Check option ranges.

        Raises:
            ValidationError: An option is out of range.
        """
        if (
            isinstance(self.years, bool)
            or not isinstance(self.years, int)
            or not MIN_YEARS <= self.years <= MAX_YEARS
        ):
            raise ValidationError(
                f"Years must be an integer between {MIN_YEARS} and {MAX_YEARS}, got {self.years}",
                "years",
            )

        if (
            isinstance(self.required_return, bool)
            or not isinstance(self.required_return, (int, float))
            or not MIN_REQUIRED_RETURN <= self.required_return <= MAX_REQUIRED_RETURN
        ):
            raise ValidationError(
                f"Required return must be between {MIN_REQUIRED_RETURN} and "
                f"{MAX_REQUIRED_RETURN}, got {self.required_return}",
                "required_return",
            )

        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "years": self.years,
            "required_return": self.required_return,
            "provider": self.provider.value,
            "save_to_cache": self.save_to_cache,
            "force_fresh": self.force_fresh,
        }


def validate_ticker(ticker: str) -> str:
    """Normalize and validate a ticker symbol.

    Returns:
        Upper-cased, trimmed ticker.

    Raises:
        ValidationError: Empty or malformed ticker.

    Example:
        >>> validate_ticker(" brk.b ")
        'BRK.B'
    """
    if not isinstance(ticker, str) or not ticker.strip():
        raise ValidationError("Ticker symbol is required", "ticker")

    symbol = ticker.strip().upper()
    if not TICKER_PATTERN.match(symbol) or symbol[0] in ".-" or symbol[-1] in ".-":
        raise ValidationError(
            f"Invalid ticker symbol '{ticker}'. Use 1-10 letters, digits, '.' or '-'",
            "ticker",
        )
    return symbol
