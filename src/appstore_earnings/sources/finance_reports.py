"""
App Store Connect Finance Reports source.

Financial reports show proceeds from settled transactions, which match
what is paid into the bank account. The API returns a gzipped TSV.
"""

import gzip
import logging
from typing import Callable, Optional, Union

import requests

from ..exceptions import ConfigurationError, NoReportAvailableError, ReportFetchError
from ..utils.fiscal_calendar import CalendarMonth
from .interfaces import ReportSource

logger = logging.getLogger(__name__)

FINANCE_REPORTS_URL = "https://api.appstoreconnect.apple.com/v1/financeReports"

# ZZ = all regions consolidated into one report
CONSOLIDATED_REGION = "ZZ"

_GZIP_MAGIC = b"\x1f\x8b"

TokenProvider = Callable[[], str]


def as_token_provider(token: Union[str, TokenProvider]) -> TokenProvider:
    if callable(token):
        return token
    return lambda: token


def decode_report_body(body: bytes, content_type: Optional[str] = None) -> str:
    """Decompress a gzipped report body when needed and decode it as UTF-8."""
    content_type = (content_type or "").lower()
    if "gzip" in content_type or body[:2] == _GZIP_MAGIC:
        body = gzip.decompress(body)
    return body.decode("utf-8")


def _api_error_message(response: requests.Response) -> str:
    """Join the error details of an App Store Connect error response."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            errors = response.json().get("errors", [])
        except ValueError:
            errors = []
        details = [e.get("detail") or e.get("title") or "Unknown error" for e in errors]
        if details:
            return f"API Error ({response.status_code}): {', '.join(details)}"
    return f"API Error ({response.status_code}): {response.reason}"


class AppStoreFinanceReportSource(ReportSource):
    """Downloads consolidated financial reports for one vendor."""

    def __init__(self, vendor_number: str, token: Union[str, TokenProvider],
                 session: Optional[requests.Session] = None, timeout: float = 30.0,
                 base_url: str = FINANCE_REPORTS_URL):
        """
        Args:
            vendor_number: App Store Connect vendor number
            token: Bearer token, or a callable returning a fresh one per request
            session: Optional requests session (one is created if omitted)
            timeout: Per-request timeout in seconds
            base_url: Finance reports endpoint
        """
        self.vendor_number = vendor_number
        self._token = as_token_provider(token)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.base_url = base_url

    def _params(self, month: CalendarMonth) -> dict:
        return {
            "filter[regionCode]": CONSOLIDATED_REGION,
            "filter[reportDate]": month.report_date,
            "filter[reportType]": "FINANCIAL",
            "filter[vendorNumber]": self.vendor_number,
        }

    def fetch_report(self, month: CalendarMonth) -> str:
        """
        Download the financial report for a calendar month.

        Raises:
            NoReportAvailableError: If Apple returns 404 for the period
            ReportFetchError: On any other API or transport failure
        """
        logger.info(f"Downloading financial report for {month.display_name} (fiscal {month.report_date})")

        try:
            token = self._token()
        except ConfigurationError as e:
            logger.error(str(e))
            raise ReportFetchError(f"Could not authenticate: {e}") from e

        try:
            response = self.session.get(
                self.base_url,
                params=self._params(month),
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/a-gzip, application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Report request failed for {month.report_date}: {e}")
            raise ReportFetchError(f"Could not reach App Store Connect: {e}") from e

        if response.status_code == 404:
            raise NoReportAvailableError(month.display_name)

        if not response.ok:
            message = _api_error_message(response)
            logger.error(message)
            raise ReportFetchError(message, status_code=response.status_code)

        try:
            return decode_report_body(response.content, response.headers.get("content-type"))
        except (OSError, UnicodeDecodeError) as e:
            raise ReportFetchError(f"Could not decode financial report: {e}") from e
