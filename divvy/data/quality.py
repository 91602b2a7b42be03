"""Sanity checks on provider data.

Checks produce warnings for the analysis rather than raising; a failed check
means the input is suspicious, not that the analysis must stop.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from divvy.data.models import AnnualDividendPoint, DividendEvent, Fundamentals, Quote
from divvy.data.models.fundamental import FUNDAMENTAL_FIELDS

# Thresholds for implausible values
MAX_PLAUSIBLE_PRICE = 100_000
MAX_AMOUNT_SPREAD = 100  # max/min dividend amount
MAX_PLAUSIBLE_FLOW = 1e12
MAX_PLAUSIBLE_PAYOUT = 2.0
MAX_PLAUSIBLE_ANNUAL_DIVIDEND = 1000
MIN_DIVIDEND_YEARS = 2
# Years of annual history counted as 100% complete
FULL_HISTORY_YEARS = 10


@dataclass
class DataQualityReport:
    """Outcome of a data quality check.

    Attributes:
        is_valid: False when the data is unusable.
        warnings: Suspicious but usable findings.
        errors: Findings that make the data unusable.
        missing_data: Categories that are absent.
        completeness: 0-100.
    """

    is_valid: bool = True
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    missing_data: list[str] = field(default_factory=list)
    completeness: float = 100.0


def check_quote(quote: Quote) -> list[str]:
    """Warnings for a quote."""
    warnings = []
    if quote.price > MAX_PLAUSIBLE_PRICE:
        warnings.append("Unusually high stock price detected")
    if not quote.name or quote.name == quote.symbol:
        warnings.append("Company name not available")
    if not quote.currency:
        warnings.append("Currency information missing, assuming USD")
    return warnings


def check_dividend_events(
    events: Sequence[DividendEvent],
) -> tuple[list[DividendEvent], list[str]]:
    """Drop invalid events and describe what looks wrong.

    Returns:
        (valid events sorted by date, warnings)
    """
    valid = sorted((event for event in events if event.is_valid()), key=lambda e: e.date)
    warnings = []

    dropped = len(events) - len(valid)
    if dropped:
        warnings.append(f"Filtered out {dropped} invalid dividend events")

    if valid:
        amounts = [event.amount for event in valid]
        if max(amounts) / min(amounts) > MAX_AMOUNT_SPREAD:
            warnings.append("Large variation in dividend amounts detected")

    return valid, warnings


def check_fundamentals(fundamentals: Fundamentals) -> DataQualityReport:
    """Report missing and implausible fundamentals."""
    report = DataQualityReport()
    labels = {
        "operating_cash_flow": "operating cash flow",
        "capital_expenditure": "capital expenditure",
        "cash_dividends_paid": "cash dividends paid",
        "net_income": "net income",
        "payout_ratio": "EPS payout ratio",
    }

    for name in FUNDAMENTAL_FIELDS:
        if getattr(fundamentals, name) is None:
            report.missing_data.append(labels[name])

    ocf = fundamentals.operating_cash_flow
    if ocf is not None and ocf < -MAX_PLAUSIBLE_FLOW:
        report.warnings.append("Unusually large negative operating cash flow")

    capex = fundamentals.capital_expenditure
    if capex is not None and capex > MAX_PLAUSIBLE_FLOW:
        report.warnings.append("Unusually large capital expenditure")

    payout = fundamentals.eps_payout_ratio
    if payout is not None:
        if payout > MAX_PLAUSIBLE_PAYOUT:
            report.warnings.append("Very high EPS payout ratio (>200%)")
        elif payout < 0:
            report.warnings.append("Negative EPS payout ratio")

    total = len(FUNDAMENTAL_FIELDS)
    report.completeness = (total - len(report.missing_data)) / total * 100
    report.is_valid = len(report.missing_data) < total
    return report


def check_annual_dividends(series: Sequence[AnnualDividendPoint]) -> DataQualityReport:
    """Report gaps and short histories in annual dividend totals."""
    if not series:
        return DataQualityReport(
            is_valid=False,
            errors=["No annual dividend data available"],
            missing_data=["annual dividend history"],
            completeness=0.0,
        )

    report = DataQualityReport()
    if len(series) < MIN_DIVIDEND_YEARS:
        report.missing_data.append("dividend history (minimum 2 years)")
        report.warnings.append(
            f"Insufficient dividend history: {len(series)} year(s), need {MIN_DIVIDEND_YEARS}"
        )
    elif len(series) < 3:
        report.warnings.append("Limited dividend history (less than 3 years)")

    for point in series:
        if point.amount > MAX_PLAUSIBLE_ANNUAL_DIVIDEND:
            report.warnings.append(f"Unusually high dividend amount for year {point.year}")

    years = sorted(point.year for point in series)
    for previous, current in zip(years, years[1:]):
        if current - previous > 1:
            report.warnings.append(f"Gap in dividend data between {previous} and {current}")

    report.completeness = min(100.0, len(series) / FULL_HISTORY_YEARS * 100)
    return report
