"""
Earnings pipeline services.
"""

from .currency_converter import CurrencyConverter
from .earnings_service import EarningsService
from .product_mapping_service import ProductMappingService
from .container import ServiceContainer, get_container, reset_container

__all__ = [
    'CurrencyConverter',
    'EarningsService',
    'ProductMappingService',
    'ServiceContainer',
    'get_container',
    'reset_container',
]
