"""Error taxonomy shared by the data and business layers."""

import re
from enum import Enum


class ErrorKind(Enum):
    """Retry classification for a failure."""

    NETWORK = "network"
    RATE_LIMIT = "rate_limit"
    DATA_SOURCE = "data_source"  # transient upstream problem
    FATAL = "fatal"


class DivvyError(Exception):
    """Base exception for analysis errors.

    Attributes:
        code: Stable machine-readable error code.
        is_retryable: Whether the failed operation may be retried.
    """

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str, code: str, is_retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.is_retryable = is_retryable


class ValidationError(DivvyError):
    """Caller input is malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        code = f"VALIDATION_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code, False)
        self.field = field


class ConfigurationError(DivvyError):
    """Configuration is missing or invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", False)


class NetworkError(DivvyError):
    """Transport failure or timeout."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "NETWORK_ERROR", True)
        self.status_code = status_code


class RateLimitError(DivvyError):
    """Upstream quota exceeded."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message, "RATE_LIMIT", True)
        self.retry_after = retry_after


class DataSourceError(DivvyError):
    """Malformed or unexpected upstream response."""

    def __init__(self, message: str, source: str, retryable: bool = True) -> None:
        super().__init__(message, f"DATA_SOURCE_{source.upper()}", retryable)
        self.source = source
        self.kind = ErrorKind.DATA_SOURCE if retryable else ErrorKind.FATAL


class TickerNotFoundError(DivvyError):
    """Symbol does not exist or is unsupported."""

    def __init__(self, ticker: str) -> None:
        super().__init__(
            f"Ticker symbol '{ticker}' not found or invalid", "TICKER_NOT_FOUND", False
        )
        self.ticker = ticker


class InsufficientDataError(DivvyError):
    """Not enough history to perform a step."""

    def __init__(self, missing_data: list[str]) -> None:
        super().__init__(
            f"Insufficient data for analysis. Missing: {', '.join(missing_data)}",
            "INSUFFICIENT_DATA",
            False,
        )
        self.missing_data = list(missing_data)


class DataQualityError(DivvyError):
    """Values failed a sanity check."""

    def __init__(self, message: str, data_type: str) -> None:
        super().__init__(message, f"DATA_QUALITY_{data_type.upper()}", False)
        self.data_type = data_type


# Messages of third-party exceptions that indicate a transient failure
_RATE_LIMIT_PATTERNS = re.compile(r"rate limit|too many requests|\b429\b", re.IGNORECASE)
_NETWORK_PATTERNS = re.compile(
    r"ENOTFOUND|ECONNRESET|ETIMEDOUT|ECONNREFUSED|connection (reset|refused|aborted)"
    r"|timed out|timeout|socket hang up|name resolution",
    re.IGNORECASE,
)


def classify_error(error: BaseException) -> ErrorKind:
    """Map any exception to an ErrorKind for retry decisions."""
    if isinstance(error, DivvyError):
        return error.kind

    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorKind.NETWORK

    text = f"{type(error).__name__}: {error}"
    if _RATE_LIMIT_PATTERNS.search(text):
        return ErrorKind.RATE_LIMIT
    if _NETWORK_PATTERNS.search(text):
        return ErrorKind.NETWORK

    return ErrorKind.FATAL


# Higher rank wins when several providers failed for the same datum
_ERROR_PRECEDENCE: list[type[DivvyError]] = [
    TickerNotFoundError,
    InsufficientDataError,
    DataQualityError,
    RateLimitError,
    NetworkError,
    DataSourceError,
]


def most_specific_error(errors: list[BaseException]) -> BaseException | None:
    """Pick the error to surface after every provider failed."""
    if not errors:
        return None

    def rank(error: BaseException) -> int:
        for index, error_type in enumerate(_ERROR_PRECEDENCE):
            if isinstance(error, error_type):
                return index
        return len(_ERROR_PRECEDENCE)

    return min(errors, key=rank)


# Failures caused by the requested symbol, not by the upstream service
_SYMBOL_ERRORS: tuple[type[DivvyError], ...] = (
    TickerNotFoundError,
    InsufficientDataError,
    DataQualityError,
    ValidationError,
)


def is_symbol_error(error: BaseException) -> bool:
    """Check whether a failure says nothing about upstream health."""
    return isinstance(error, _SYMBOL_ERRORS)
