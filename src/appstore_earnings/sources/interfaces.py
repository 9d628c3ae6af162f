"""Abstract interfaces for the external collaborators of the earnings pipeline."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Optional

from ..models.earnings import ProductInfo
from ..models.cache import CacheEnvelope
from ..utils.fiscal_calendar import CalendarMonth


class ReportSource(ABC):
    """Supplies raw Financial Report text for a period."""

    @abstractmethod
    def fetch_report(self, month: CalendarMonth) -> str:
        """
        Download the report for a month.

        Raises:
            NoReportAvailableError: If no report exists for the period yet
            ReportFetchError: On transport or API failure
        """
        pass


class RateSource(ABC):
    """Supplies exchange rates."""

    @abstractmethod
    def get_rate(self, base_currency: str, target_currency: str, on_date: Optional[date] = None) -> float:
        """
        Rate to multiply `base_currency` amounts by to get `target_currency`.

        Raises:
            RateLookupError: If the rate could not be obtained
        """
        pass


class MappingSource(ABC):
    """Builds the product to parent app mapping."""

    @abstractmethod
    def build_mapping(self) -> Dict[str, ProductInfo]:
        """
        Build the full mapping keyed by product id.

        Raises:
            MappingFetchError: If the mapping could not be built at all
        """
        pass


class CacheStore(ABC):
    """Key to blob store used for reports and the product mapping."""

    @abstractmethod
    def read(self, key: str) -> Optional[CacheEnvelope]:
        """Return the cached envelope for a key, or None when absent."""
        pass

    @abstractmethod
    def write(self, key: str, payload, now: Optional[float] = None) -> CacheEnvelope:
        """Store a payload under a key."""
        pass

    def contains(self, key: str) -> bool:
        return self.read(key) is not None
