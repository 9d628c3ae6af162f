"""
Product aggregation service.
Groups Financial Report rows into one ProductEarnings per product.
"""

import logging
from typing import Dict, Iterable, List

from ..models.earnings import ADD_ON_PREFIX, DEFAULT_CURRENCY, ProductEarnings, ReportRow

logger = logging.getLogger(__name__)


def is_add_on_type(product_type: str) -> bool:
    """True for in-app purchase and subscription product types."""
    return bool(product_type) and product_type.startswith(ADD_ON_PREFIX)


def aggregate_by_product(rows: Iterable[ReportRow]) -> List[ProductEarnings]:
    """
    Aggregate rows by stable product key, summing proceeds per currency.

    The vendor identifier (SKU) is unique per product even when different
    apps sell IAPs under the same display name, so it is preferred over
    the Apple identifier.

    Rows with zero extended proceeds are skipped before a key is created,
    so a product with only zero-value rows never appears. Title, type and
    add-on classification come from the first row seen for a key; later
    rows with different values are ignored.
    """
    products: Dict[str, ProductEarnings] = {}
    skipped_zero = 0

    for row in rows:
        if row.extended_partner_share == 0:
            skipped_zero += 1
            continue

        key = row.product_key
        if not key:
            continue

        product = products.get(key)
        if product is None:
            product = ProductEarnings(
                key=key,
                apple_identifier=row.apple_identifier,
                title=row.title or row.vendor_identifier,
                sku=row.vendor_identifier,
                product_type=row.product_type_identifier,
                is_add_on=is_add_on_type(row.product_type_identifier),
            )
            products[key] = product

        currency = row.partner_share_currency or DEFAULT_CURRENCY
        product.add_proceeds(currency, row.extended_partner_share)

    if skipped_zero:
        logger.debug(f"Skipped {skipped_zero} zero-proceeds rows")

    return list(products.values())


def get_unique_currencies(products: Iterable[ProductEarnings]) -> List[str]:
    """Currencies present across all products, in first-seen order."""
    currencies: Dict[str, None] = {}
    for product in products:
        for currency in product.proceeds_by_currency:
            currencies.setdefault(currency, None)
    return list(currencies)
