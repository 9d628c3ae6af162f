"""
Currency conversion service.
Fetches exchange rates for every currency in a report and converts product
proceeds into the single target currency.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date
from typing import Dict, Iterable, List, Optional

from ..models.earnings import ProductEarnings
from ..sources.interfaces import RateSource
from .product_aggregator import get_unique_currencies

logger = logging.getLogger(__name__)

FALLBACK_RATE = 1.0


class CurrencyConverter:
    """
    Converts multi-currency proceeds into one target currency.

    Rate lookups for independent currencies run concurrently. A failed
    lookup falls back to a 1:1 rate and is logged as a warning; it never
    aborts the conversion or the other lookups.
    """

    def __init__(self, rate_source: RateSource, target_currency: str = "USD", max_workers: int = 8):
        self.rate_source = rate_source
        self.target_currency = target_currency.upper()
        self.max_workers = max(1, max_workers)

    def _lookup(self, currency: str, on_date: Optional[date]) -> float:
        return self.rate_source.get_rate(currency, self.target_currency, on_date)

    def fetch_exchange_rates(self, currencies: Iterable[str], on_date: Optional[date] = None) -> Dict[str, float]:
        """
        Build a complete rate table for the given currencies.

        Args:
            currencies: Source currency codes
            on_date: Optional date for historical rates

        Returns:
            Mapping of currency code to rate, with an entry for every
            requested currency and the target currency
        """
        rates = {self.target_currency: 1.0}
        to_fetch = []
        for currency in currencies:
            if currency not in rates and currency not in to_fetch:
                to_fetch.append(currency)

        if not to_fetch:
            return rates

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(to_fetch))) as pool:
            futures = {pool.submit(self._lookup, currency, on_date): currency for currency in to_fetch}

            for future in as_completed(futures):
                currency = futures[future]
                try:
                    rates[currency] = float(future.result())
                except Exception as e:
                    logger.warning(f"Could not fetch rate for {currency}, using 1:1 ({e})")
                    rates[currency] = FALLBACK_RATE

        logger.debug(f"Exchange rates to {self.target_currency}: {rates}")
        return rates

    @staticmethod
    def convert_products(products: List[ProductEarnings], rates: Dict[str, float]) -> List[ProductEarnings]:
        """Set each product's converted total from its per-currency proceeds."""
        for product in products:
            product.total_proceeds = sum(
                amount * rates.get(currency, FALLBACK_RATE)
                for currency, amount in product.proceeds_by_currency.items()
            )
        return products

    def convert(self, products: List[ProductEarnings], on_date: Optional[date] = None) -> Dict[str, float]:
        """Fetch rates for all products' currencies, then convert. Returns the rate table."""
        rates = self.fetch_exchange_rates(get_unique_currencies(products), on_date)
        self.convert_products(products, rates)
        return rates
