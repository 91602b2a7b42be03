"""Analysis output models.

AnalysisResult is the immutable value returned by the analyzer. Its to_dict()
and from_dict() are exact inverses so a cached copy rehydrates into a result
equal to the freshly computed one.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from divvy.data.models.fundamental import Fundamentals
from divvy.data.models.stock import AnnualDividendPoint, Quote


@dataclass(frozen=True)
class EmaSnapshot:
    """Latest exponential moving averages (None when history is too short)."""

    ema20: float | None = None
    ema50: float | None = None
    ema200: float | None = None

    @property
    def is_complete(self) -> bool:
        """All three averages are available."""
        return None not in (self.ema20, self.ema50, self.ema200)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"ema20": self.ema20, "ema50": self.ema50, "ema200": self.ema200}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "EmaSnapshot":
        """Create instance from dictionary."""
        data = data or {}
        return cls(ema20=data.get("ema20"), ema50=data.get("ema50"), ema200=data.get("ema200"))


@dataclass(frozen=True)
class MacdSnapshot:
    """Latest MACD reading."""

    macd_line: float | None = None
    signal_line: float | None = None
    histogram: float | None = None

    @property
    def is_available(self) -> bool:
        """All MACD components are available."""
        return None not in (self.macd_line, self.signal_line, self.histogram)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "macd_line": self.macd_line,
            "signal_line": self.signal_line,
            "histogram": self.histogram,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "MacdSnapshot":
        """Create instance from dictionary."""
        data = data or {}
        return cls(
            macd_line=data.get("macd_line"),
            signal_line=data.get("signal_line"),
            histogram=data.get("histogram"),
        )


@dataclass(frozen=True)
class RsiSnapshot:
    """Latest RSI reading."""

    rsi: float | None = None
    period: int = 14

    @property
    def is_available(self) -> bool:
        """RSI value is available."""
        return self.rsi is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"rsi": self.rsi, "period": self.period}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RsiSnapshot":
        """Create instance from dictionary."""
        data = data or {}
        return cls(rsi=data.get("rsi"), period=data.get("period", 14))


@dataclass(frozen=True)
class DividendScores:
    """Sub-scores on a 0-100 scale."""

    payout: float
    fcf: float
    streak: float
    growth: float
    trend: float
    macd: float
    rsi: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "payout": self.payout,
            "fcf": self.fcf,
            "streak": self.streak,
            "growth": self.growth,
            "trend": self.trend,
            "macd": self.macd,
            "rsi": self.rsi,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DividendScores":
        """Create instance from dictionary."""
        return cls(
            payout=data["payout"],
            fcf=data["fcf"],
            streak=data["streak"],
            growth=data["growth"],
            trend=data.get("trend", 0.0),
            macd=data.get("macd", 50.0),
            rsi=data.get("rsi", 50.0),
        )


@dataclass(frozen=True)
class StreakValidation:
    """Outcome of checking a computed streak against known long-streak issuers.

    Attributes:
        is_valid: False when the computed streak is implausibly low.
        confidence: "high", "medium" or "low".
        expected_streak: Reference streak if the ticker is listed.
        warning: Human-readable data quality note.
        adjusted_streak: Dampened replacement streak, only for invalid results.
        rationale: Why the adjustment was proposed.
    """

    is_valid: bool = True
    confidence: str = "high"
    expected_streak: int | None = None
    warning: str | None = None
    adjusted_streak: int | None = None
    rationale: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_valid": self.is_valid,
            "confidence": self.confidence,
            "expected_streak": self.expected_streak,
            "warning": self.warning,
            "adjusted_streak": self.adjusted_streak,
            "rationale": self.rationale,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "StreakValidation":
        """Create instance from dictionary."""
        data = data or {}
        return cls(
            is_valid=data.get("is_valid", True),
            confidence=data.get("confidence", "high"),
            expected_streak=data.get("expected_streak"),
            warning=data.get("warning"),
            adjusted_streak=data.get("adjusted_streak"),
            rationale=data.get("rationale"),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Full dividend analysis for one ticker."""

    ticker: str
    quote: Quote
    annual_dividends: tuple[AnnualDividendPoint, ...]
    fundamentals: Fundamentals
    ema: EmaSnapshot
    macd: MacdSnapshot
    rsi: RsiSnapshot
    scores: DividendScores
    ttm_dividends: float
    ttm_yield: float | None
    cagr3: float | None
    cagr5: float | None
    streak: int
    raw_streak: int
    streak_validation: StreakValidation
    safe_growth: float
    forward_dividend: float
    forward_yield: float | None
    fair_value: float | None
    required_return: float
    total_score: int
    analyzed_at: datetime
    warnings: tuple[str, ...] = ()
    sources: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "ticker": self.ticker,
            "quote": self.quote.to_dict(),
            "annual_dividends": [point.to_list() for point in self.annual_dividends],
            "fundamentals": self.fundamentals.to_dict(),
            "ema": self.ema.to_dict(),
            "macd": self.macd.to_dict(),
            "rsi": self.rsi.to_dict(),
            "scores": self.scores.to_dict(),
            "ttm_dividends": self.ttm_dividends,
            "ttm_yield": self.ttm_yield,
            "cagr3": self.cagr3,
            "cagr5": self.cagr5,
            "streak": self.streak,
            "raw_streak": self.raw_streak,
            "streak_validation": self.streak_validation.to_dict(),
            "safe_growth": self.safe_growth,
            "forward_dividend": self.forward_dividend,
            "forward_yield": self.forward_yield,
            "fair_value": self.fair_value,
            "required_return": self.required_return,
            "total_score": self.total_score,
            "analyzed_at": self.analyzed_at.isoformat(),
            "warnings": list(self.warnings),
            "sources": dict(self.sources),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisResult":
        """Create instance from dictionary."""
        analyzed_at = data["analyzed_at"]
        if isinstance(analyzed_at, str):
            analyzed_at = datetime.fromisoformat(analyzed_at.replace("Z", "+00:00"))

        return cls(
            ticker=data["ticker"],
            quote=Quote.from_dict(data["quote"]),
            annual_dividends=tuple(
                AnnualDividendPoint.from_list(point) for point in data.get("annual_dividends", [])
            ),
            fundamentals=Fundamentals.from_dict(data.get("fundamentals", {})),
            ema=EmaSnapshot.from_dict(data.get("ema")),
            macd=MacdSnapshot.from_dict(data.get("macd")),
            rsi=RsiSnapshot.from_dict(data.get("rsi")),
            scores=DividendScores.from_dict(data["scores"]),
            ttm_dividends=data["ttm_dividends"],
            ttm_yield=data.get("ttm_yield"),
            cagr3=data.get("cagr3"),
            cagr5=data.get("cagr5"),
            streak=data["streak"],
            raw_streak=data.get("raw_streak", data["streak"]),
            streak_validation=StreakValidation.from_dict(data.get("streak_validation")),
            safe_growth=data["safe_growth"],
            forward_dividend=data["forward_dividend"],
            forward_yield=data.get("forward_yield"),
            fair_value=data.get("fair_value"),
            required_return=data["required_return"],
            total_score=data["total_score"],
            analyzed_at=analyzed_at,
            warnings=tuple(data.get("warnings", [])),
            sources=dict(data.get("sources", {})),
        )
