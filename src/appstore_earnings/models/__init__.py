# src/appstore_earnings/models/__init__.py
"""
Data models for the earnings reporter.
"""

from .earnings import (
    ADD_ON_PREFIX,
    DEFAULT_CURRENCY,
    ReportRow,
    ProductEarnings,
    ProductInfo,
    ParentAppEntry,
    PaymentEstimate,
    EarningsReport,
    format_short_date,
)
from .cache import CacheEnvelope
from .enums import ReportStatus, ConfigSource

__all__ = [
    'ADD_ON_PREFIX',
    'DEFAULT_CURRENCY',
    'ReportRow',
    'ProductEarnings',
    'ProductInfo',
    'ParentAppEntry',
    'PaymentEstimate',
    'EarningsReport',
    'format_short_date',
    'CacheEnvelope',
    'ReportStatus',
    'ConfigSource',
]
