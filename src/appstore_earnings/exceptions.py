"""
Exception hierarchy for the earnings reporter.
"""


class EarningsError(Exception):
    """Base class for earnings reporter errors."""
    pass


class ConfigurationError(EarningsError):
    """Raised when required credentials or settings are missing."""
    pass


class ReportFetchError(EarningsError):
    """Raised when a financial report could not be downloaded."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class NoReportAvailableError(ReportFetchError):
    """Raised when Apple has no financial report for the requested period yet."""

    def __init__(self, period_label: str):
        super().__init__(
            f"No financial report available for {period_label}. "
            f"Reports are typically available by the 5th of the following month; "
            f"try an earlier month.",
            status_code=404,
        )
        self.period_label = period_label


class RateLookupError(EarningsError):
    """Raised when a single exchange rate lookup fails."""
    pass


class MappingFetchError(EarningsError):
    """Raised when the product to parent app mapping could not be built."""
    pass
