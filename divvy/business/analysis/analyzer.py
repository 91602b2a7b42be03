"""
Dividend Analyzer - end-to-end analysis of one ticker

Pipeline:
1. Cache lookup by (ticker, options hash) -> rehydrate on hit
2. Quote (fatal on failure), dividends and fundamentals (degrade to warnings)
3. Annual series, TTM, growth windows, streak
4. Streak validation against known long-streak payers
5. Safe growth, forward dividend/yield, Gordon Growth fair value
6. Price history -> EMA / MACD / RSI (unavailable on failure)
7. Scores and composite
8. Best-effort save to cache

Usage:
    analyzer = DividendAnalyzer.from_config(AnalyzerConfig.load())
    result = analyzer.analyze("KO", AnalysisOptions(years=20))
"""

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Protocol

from divvy.business.config.analysis_config import AnalysisOptions, AnalyzerConfig, validate_ticker
from divvy.data.cache import AnalysisCache, SupabaseClient, hash_options
from divvy.data.models import (
    AnalysisResult,
    DividendEvent,
    Fundamentals,
    PriceSeries,
    ProviderChoice,
    Quote,
)
from divvy.data.providers import (
    AlphaVantageProvider,
    CircuitBreakerRegistry,
    UnifiedDataProvider,
    YahooProvider,
)
from divvy.data.providers.unified_provider import Acquired
from divvy.data.quality import (
    check_annual_dividends,
    check_dividend_events,
    check_fundamentals,
    check_quote,
)
from divvy.engine.dividend import (
    annualize_dividends,
    calc_dividend_streak,
    calc_forward_dividend,
    calc_gordon_growth,
    calc_growth_windows,
    calc_safe_growth,
    calc_ttm_dividends,
    calc_yield,
    validate_streak,
)
from divvy.engine.scoring import calc_dividend_scores, calc_total_score
from divvy.engine.technical import calc_ema_snapshot, calc_macd, calc_rsi

logger = logging.getLogger(__name__)


class MarketData(Protocol):
    """Data access needed by the analyzer (see UnifiedDataProvider)."""

    def get_quote(self, symbol: str, choice: ProviderChoice) -> Acquired[Quote]:
        ...

    def get_dividend_events(
        self, symbol: str, years: int, choice: ProviderChoice
    ) -> Acquired[list[DividendEvent]]:
        ...

    def get_fundamentals(
        self, symbol: str, years: int, choice: ProviderChoice
    ) -> Acquired[Fundamentals]:
        ...

    def get_price_series(
        self, symbol: str, lookback_years: int, choice: ProviderChoice
    ) -> Acquired[PriceSeries]:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchAnalysisResult:
    """Outcome of analyzing several tickers."""

    results: dict[str, AnalysisResult] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.results)

    def ranked(self) -> list[AnalysisResult]:
        """Results ordered by total score, then forward yield."""
        return sorted(
            self.results.values(),
            key=lambda r: (r.total_score, r.forward_yield or 0.0),
            reverse=True,
        )


class DividendAnalyzer:
    """Runs the dividend analysis pipeline.

    The analyzer holds no per-analysis state, so one instance can serve
    concurrent analyses. Circuit breaker state lives in the provider and is
    shared across them.
    """

    def __init__(
        self,
        provider: MarketData,
        cache: AnalysisCache | None = None,
        config: AnalyzerConfig | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize analyzer.

        Args:
            provider: Market data access with fallback.
            cache: Optional analysis cache.
            config: Analyzer configuration.
            clock: Returns the current aware UTC time.
        """
        self._provider = provider
        self._cache = cache
        self._config = config or AnalyzerConfig()
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: AnalyzerConfig | None = None,
        supabase_client: SupabaseClient | None = None,
    ) -> "DividendAnalyzer":
        """Build an analyzer with Yahoo, Alpha Vantage and an optional cache."""
        config = config or AnalyzerConfig()
        settings = config.providers

        provider = UnifiedDataProvider(
            routing_config=settings.routing_config,
            yahoo_provider=YahooProvider(rate_limit=settings.yahoo_rate_limit),
            alpha_vantage_provider=AlphaVantageProvider(
                daily_ceiling=settings.alpha_vantage_daily_ceiling,
                rate_limit=settings.alpha_vantage_rate_limit,
                timeout=settings.request_timeout,
            ),
            breakers=CircuitBreakerRegistry(
                failure_threshold=config.circuit_breaker.failure_threshold,
                recovery_time=config.circuit_breaker.recovery_time,
            ),
            retry_policies={
                "yahoo": config.retry.to_policy(),
                "alpha_vantage": config.precision_retry.to_policy(),
            },
        )

        cache = None
        if supabase_client is not None and supabase_client.is_available and config.cache.enabled:
            cache = AnalysisCache(supabase_client)

        return cls(provider, cache=cache, config=config)

    @property
    def provider(self) -> MarketData:
        return self._provider

    @property
    def cache(self) -> AnalysisCache | None:
        return self._cache

    def cache_key(self, options: AnalysisOptions) -> dict[str, Any]:
        """Options that determine the analysis outcome."""
        return {
            "years": options.years,
            "required_return": options.required_return,
            "provider": options.provider.value,
            "streak_policy": self._config.streak.to_dict(),
            "price_lookback_years": self._config.technical.price_lookback_years,
        }

    def analyze(self, ticker: str, options: AnalysisOptions | None = None) -> AnalysisResult:
        """Analyze one ticker.

        Args:
            ticker: Stock symbol.
            options: Analysis options (defaults applied when None).

        Returns:
            AnalysisResult with every degraded input listed in warnings.

        Raises:
            ValidationError: Malformed ticker or options.
            DivvyError: The quote could not be acquired from any provider.
        """
        symbol = validate_ticker(ticker)
        options = (options or AnalysisOptions()).validate()
        cache_options = self.cache_key(options)
        options_hash = hash_options(cache_options)
        use_cache = (
            self._cache is not None and self._config.cache.enabled and options.save_to_cache
        )

        if use_cache and not options.force_fresh:
            cached = self._load_cached(symbol, options_hash)
            if cached is not None:
                return cached

        logger.info(f"Analyzing {symbol} (years={options.years}, provider={options.provider.value})")
        result = self._analyze_fresh(symbol, options)

        if use_cache and self._cache.is_available:
            record_id = self._cache.save(result, cache_options, options_hash)
            if record_id is None:
                result = replace(
                    result, warnings=result.warnings + ("Analysis could not be saved to cache",)
                )

        return result

    def _load_cached(self, symbol: str, options_hash: str) -> AnalysisResult | None:
        record = self._cache.get_recent(
            symbol, options_hash, self._config.cache.max_age_hours, now=self._clock()
        )
        if record is None:
            return None
        try:
            result = self._cache.hydrate(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cached analysis {record.id} for {symbol}: {e}")
            return None
        logger.info(f"Using cached analysis for {symbol} from {record.observed_at.isoformat()}")
        return result

    def _analyze_fresh(self, symbol: str, options: AnalysisOptions) -> AnalysisResult:
        now = self._clock()
        choice = options.provider
        warnings: list[str] = []
        sources: dict[str, str] = {}

        # Quote failure is fatal
        quote_acq = self._provider.get_quote(symbol, choice)
        quote = quote_acq.value
        self._record_source("quote", quote_acq, sources, warnings)
        warnings.extend(check_quote(quote))

        # Dividends
        raw_events: list[DividendEvent] = []
        try:
            dividends_acq = self._provider.get_dividend_events(symbol, options.years, choice)
            raw_events = dividends_acq.value
            self._record_source("dividends", dividends_acq, sources, warnings)
        except Exception as e:
            logger.warning(f"Dividend data unavailable for {symbol}: {e}")
            warnings.append(f"Dividend data unavailable: {e}")

        events, event_warnings = check_dividend_events(raw_events)
        warnings.extend(event_warnings)

        annual = annualize_dividends(events)
        history_report = check_annual_dividends(annual)
        warnings.extend(history_report.errors + history_report.warnings)

        ttm_dividends = calc_ttm_dividends(events, now)
        ttm_yield = calc_yield(ttm_dividends, quote.price)
        cagr3, cagr5 = calc_growth_windows(annual)

        # Streak and validation
        raw_streak = calc_dividend_streak(annual, self._config.streak)
        validation = validate_streak(symbol, raw_streak)
        streak = raw_streak
        if validation.warning:
            warnings.append(validation.warning)
        if validation.adjusted_streak is not None:
            streak = validation.adjusted_streak
            warnings.append(
                f"Streak adjusted from {raw_streak} to {streak}: {validation.rationale}"
            )

        # Fundamentals
        fundamentals = Fundamentals(source="unavailable")
        try:
            fundamentals_acq = self._provider.get_fundamentals(symbol, options.years, choice)
            fundamentals = fundamentals_acq.value
            self._record_source("fundamentals", fundamentals_acq, sources, warnings)
        except Exception as e:
            logger.warning(f"Fundamental data unavailable for {symbol}: {e}")
            warnings.append(f"Fundamental data unavailable: {e}")

        fundamentals_report = check_fundamentals(fundamentals)
        warnings.extend(fundamentals_report.warnings)
        if fundamentals_report.missing_data:
            warnings.append(f"Missing fundamentals: {', '.join(fundamentals_report.missing_data)}")

        # Growth and valuation
        safe_growth = calc_safe_growth(cagr5, cagr3, fundamentals, streak)
        forward_dividend = calc_forward_dividend(ttm_dividends, safe_growth)
        forward_yield = calc_yield(forward_dividend, quote.price)
        fair_value = calc_gordon_growth(
            forward_dividend, quote.price, options.required_return, safe_growth
        )
        if fair_value is None:
            warnings.append(
                "Fair value not computed: required return does not exceed the growth assumption"
            )

        # Technical indicators
        tech = self._config.technical
        closes: list[float] = []
        try:
            prices_acq = self._provider.get_price_series(symbol, tech.price_lookback_years, choice)
            closes = prices_acq.value.closes()
            self._record_source("prices", prices_acq, sources, warnings)
        except Exception as e:
            logger.warning(f"Price history unavailable for {symbol}: {e}")
            warnings.append(f"Price history unavailable, technical indicators skipped: {e}")

        ema = calc_ema_snapshot(closes, tech.ema_periods)
        macd = calc_macd(closes, tech.macd_fast, tech.macd_slow, tech.macd_signal)
        rsi = calc_rsi(closes, tech.rsi_period)
        if closes and not ema.is_complete:
            warnings.append(
                f"Insufficient price history for EMA{max(tech.ema_periods)} "
                f"({len(closes)} closes), trend score is 0"
            )

        scores = calc_dividend_scores(
            fundamentals, streak, safe_growth, quote.price, ema, macd, rsi
        )
        total_score = calc_total_score(scores)

        return AnalysisResult(
            ticker=symbol,
            quote=quote,
            annual_dividends=tuple(annual),
            fundamentals=fundamentals,
            ema=ema,
            macd=macd,
            rsi=rsi,
            scores=scores,
            ttm_dividends=ttm_dividends,
            ttm_yield=ttm_yield,
            cagr3=cagr3,
            cagr5=cagr5,
            streak=streak,
            raw_streak=raw_streak,
            streak_validation=validation,
            safe_growth=safe_growth,
            forward_dividend=forward_dividend,
            forward_yield=forward_yield,
            fair_value=fair_value,
            required_return=options.required_return,
            total_score=total_score,
            analyzed_at=now,
            warnings=tuple(warnings),
            sources=sources,
        )

    @staticmethod
    def _record_source(
        label: str, acquired: Acquired[Any], sources: dict[str, str], warnings: list[str]
    ) -> None:
        sources[label] = acquired.source
        if acquired.used_fallback:
            warnings.append(
                f"{label.capitalize()} served by {acquired.source} after fallback "
                f"({'; '.join(acquired.fallback_errors)})"
            )

    def analyze_many(
        self,
        tickers: Iterable[str],
        options: AnalysisOptions | None = None,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> BatchAnalysisResult:
        """Analyze several tickers concurrently.

        Each ticker is an independent analysis; a failure is recorded for
        that ticker only.

        Args:
            tickers: Symbols to analyze (duplicates ignored).
            options: Options applied to every ticker.
            max_workers: Thread count (default from config).
            progress_callback: Called with (completed, total).
        """
        symbols = list(dict.fromkeys(t.strip().upper() for t in tickers if t and t.strip()))
        batch = BatchAnalysisResult()
        if not symbols:
            return batch

        workers = max_workers or self._config.max_workers
        completed = 0
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(self.analyze, symbol, options): symbol for symbol in symbols}

            for future in as_completed(futures):
                symbol = futures[future]
                try:
                    batch.results[symbol] = future.result()
                except Exception as e:
                    logger.error(f"Analysis failed for {symbol}: {e}")
                    batch.errors[symbol] = str(e)

                completed += 1
                if progress_callback:
                    progress_callback(completed, len(symbols))

        return batch
