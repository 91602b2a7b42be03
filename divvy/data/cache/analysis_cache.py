"""Analysis result cache with Supabase backend.

Results are keyed by (ticker, options hash). Cache faults never reach the
caller: reads degrade to a miss and writes to a logged warning, so an
analysis always completes without the store.
"""

import hashlib
import json
import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from divvy.data.cache.supabase_client import SupabaseClient
from divvy.data.models import AnalysisResult

logger = logging.getLogger(__name__)

TICKERS_TABLE = "tickers"
ANALYSES_TABLE = "analyses"

# Length of the hex options key
HASH_LENGTH = 16


def hash_options(options: Mapping[str, Any]) -> str:
    """Stable content hash of an option set.

    Keys are sorted and serialized compactly, so insertion order never
    changes the hash.

    Example:
        >>> hash_options({"years": 15, "provider": "auto"}) == hash_options(
        ...     {"provider": "auto", "years": 15})
        True
    """
    canonical = json.dumps(dict(options), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:HASH_LENGTH]


def _parse_timestamp(value: str | datetime) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _finite_or_none(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


@dataclass(frozen=True)
class CacheRecord:
    """One stored analysis."""

    id: str
    ticker: str
    options_hash: str
    observed_at: datetime
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CacheRecord":
        """Create instance from a database row."""
        return cls(
            id=str(row["id"]),
            ticker=row.get("symbol", ""),
            options_hash=row["options_hash"],
            observed_at=_parse_timestamp(row["observed_at"]),
            raw=row.get("raw") or {},
        )

    def is_fresh(self, max_age_hours: float, now: datetime | None = None) -> bool:
        """Check now - observed_at <= max_age_hours."""
        now = now or datetime.now(timezone.utc)
        return now - self.observed_at <= timedelta(hours=max_age_hours)


class AnalysisCache:
    """Stores and retrieves analysis results.

    Usage:
        cache = AnalysisCache(SupabaseClient.from_env())
        record = cache.get_recent("KO", options_hash, max_age_hours=24)
        if record:
            result = cache.hydrate(record)
    """

    def __init__(self, client: SupabaseClient) -> None:
        """Initialize analysis cache.

        Args:
            client: Supabase client owned by the caller.
        """
        self._client = client

    @property
    def is_available(self) -> bool:
        """Check if cache is available."""
        return self._client.is_available

    @staticmethod
    def hash_options(options: Mapping[str, Any]) -> str:
        return hash_options(options)

    def get_recent(
        self,
        ticker: str,
        options_hash: str,
        max_age_hours: float,
        now: datetime | None = None,
    ) -> CacheRecord | None:
        """Most recent analysis for (ticker, options_hash) within max_age_hours.

        Returns:
            CacheRecord, or None when missing, expired or the store failed.
        """
        if not self.is_available:
            logger.debug("Cache unavailable, skipping lookup")
            return None

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=max_age_hours)

        try:
            result = (
                self._client.table(ANALYSES_TABLE)
                .select("*")
                .eq("symbol", ticker)
                .eq("options_hash", options_hash)
                .gte("observed_at", cutoff.isoformat())
                .order("observed_at", desc=True)
                .limit(1)
                .execute()
            )
            if not result.data:
                logger.debug(f"Cache miss for analysis: {ticker} ({options_hash})")
                return None

            record = CacheRecord.from_row(result.data[0])
        except Exception as e:
            logger.warning(f"Cache lookup failed for {ticker}: {e}")
            return None

        if not record.is_fresh(max_age_hours, now):
            logger.debug(f"Cache expired for analysis: {ticker} ({options_hash})")
            return None

        logger.debug(f"Cache hit for analysis: {ticker} ({options_hash})")
        return record

    def hydrate(self, record: CacheRecord) -> AnalysisResult:
        """Rebuild the AnalysisResult stored in a record."""
        return AnalysisResult.from_dict(record.raw["analysis"])

    def _ensure_ticker(self, symbol: str, name: str, currency: str) -> str:
        """Get or create the tickers row, returning its id."""
        existing = self._client.table(TICKERS_TABLE).select("id").eq("symbol", symbol).limit(1).execute()
        if existing.data:
            return str(existing.data[0]["id"])

        created = (
            self._client.table(TICKERS_TABLE)
            .insert({"symbol": symbol, "name": name, "currency": currency})
            .execute()
        )
        return str(created.data[0]["id"])

    def save(
        self,
        result: AnalysisResult,
        options: Mapping[str, Any],
        options_hash: str | None = None,
    ) -> str | None:
        """Persist an analysis.

        Args:
            result: Freshly computed analysis.
            options: Option set the analysis was computed with.
            options_hash: Precomputed hash of options.

        Returns:
            Record id, or None when the store is unavailable or the write failed.
        """
        if not self.is_available:
            return None

        options_hash = options_hash or hash_options(options)
        fundamentals = result.fundamentals

        try:
            ticker_id = self._ensure_ticker(result.ticker, result.quote.name, result.quote.currency)
            record = {
                "ticker_id": ticker_id,
                "symbol": result.ticker,
                "observed_at": result.analyzed_at.isoformat(),
                "options_hash": options_hash,
                "price": result.quote.price,
                "ttm_div": result.ttm_dividends,
                "ttm_yield": result.ttm_yield,
                "forward_yield": result.forward_yield,
                "cagr3": result.cagr3,
                "cagr5": result.cagr5,
                "safe_growth": result.safe_growth,
                "streak": result.streak,
                "payout_eps": _finite_or_none(fundamentals.eps_payout_ratio),
                "payout_fcf": _finite_or_none(fundamentals.fcf_payout_ratio),
                "fcf_coverage": _finite_or_none(fundamentals.fcf_coverage),
                "ddm_price": result.fair_value,
                "score_payout": round(result.scores.payout),
                "score_fcf": round(result.scores.fcf),
                "score_streak": round(result.scores.streak),
                "score_growth": round(result.scores.growth),
                "score_total": result.total_score,
                "raw": {"analysis": result.to_dict(), "options": dict(options)},
            }
            response = self._client.table(ANALYSES_TABLE).insert(record).execute()
            record_id = str(response.data[0]["id"])
        except Exception as e:
            logger.warning(f"Failed to save analysis for {result.ticker}: {e}")
            return None

        logger.debug(f"Saved analysis for {result.ticker} as {record_id}")
        return record_id

    def get_history(self, ticker: str, limit: int = 30) -> list[CacheRecord]:
        """Past analyses of a ticker, newest first."""
        if not self.is_available:
            return []

        try:
            result = (
                self._client.table(ANALYSES_TABLE)
                .select("*")
                .eq("symbol", ticker)
                .order("observed_at", desc=True)
                .limit(limit)
                .execute()
            )
            return [CacheRecord.from_row(row) for row in result.data or []]
        except Exception as e:
            logger.warning(f"Failed to load analysis history for {ticker}: {e}")
            return []
