"""
Exchange rate source backed by the Frankfurter API (European Central Bank rates).
"""

import logging
from datetime import date
from typing import Optional

import requests

from ..exceptions import RateLookupError
from .interfaces import RateSource

logger = logging.getLogger(__name__)

FRANKFURTER_API_URL = "https://api.frankfurter.app"


class FrankfurterRateSource(RateSource):
    """Looks up one base→target rate per request."""

    def __init__(self, base_url: str = FRANKFURTER_API_URL,
                 session: Optional[requests.Session] = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_rate(self, base_currency: str, target_currency: str, on_date: Optional[date] = None) -> float:
        if base_currency == target_currency:
            return 1.0

        endpoint = f"/{on_date.isoformat()}" if on_date else "/latest"
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.get(
                url,
                params={"from": base_currency, "to": target_currency},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RateLookupError(f"Failed to fetch exchange rate for {base_currency}: {e}") from e

        if not response.ok:
            raise RateLookupError(
                f"Failed to fetch exchange rate for {base_currency}: {response.status_code} {response.reason}"
            )

        try:
            rate = response.json().get("rates", {}).get(target_currency)
        except ValueError as e:
            raise RateLookupError(f"Invalid rate response for {base_currency}: {e}") from e

        if not rate:
            raise RateLookupError(f"No exchange rate found for {base_currency} to {target_currency}")

        logger.debug(f"Rate {base_currency}->{target_currency}: {rate}")
        return float(rate)
