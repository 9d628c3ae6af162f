"""
External collaborators: App Store Connect, exchange rates and file caches.
"""

from .interfaces import CacheStore, MappingSource, RateSource, ReportSource
from .finance_reports import AppStoreFinanceReportSource
from .exchange_rates import FrankfurterRateSource
from .app_store import AppStoreMappingSource
from .cache import FileMappingCache, FileReportCache

__all__ = [
    'CacheStore',
    'MappingSource',
    'RateSource',
    'ReportSource',
    'AppStoreFinanceReportSource',
    'FrankfurterRateSource',
    'AppStoreMappingSource',
    'FileMappingCache',
    'FileReportCache',
]
