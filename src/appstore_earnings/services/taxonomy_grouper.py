"""
Taxonomy grouping service.
Places products under their parent apps using the product mapping.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from ..models.earnings import ParentAppEntry, ProductEarnings, ProductInfo

logger = logging.getLogger(__name__)

SELF_MAPPED = "self"

# Evaluated in order, first hit wins. The SKU matches IAPs and
# subscriptions; the Apple identifier matches apps.
LOOKUP_STRATEGIES: Tuple[Tuple[str, Callable[[ProductEarnings], str]], ...] = (
    ("sku", lambda product: product.sku),
    ("apple_identifier", lambda product: product.apple_identifier),
)


@dataclass(frozen=True)
class ParentResolution:
    """Where a product belongs in the app hierarchy."""
    parent_id: str
    parent_title: str
    is_add_on: bool
    matched_by: str


def resolve_parent(product: ProductEarnings, mapping: Mapping[str, ProductInfo]) -> ParentResolution:
    """
    Resolve a product's parent app through the lookup strategies.

    A product that no strategy matches becomes its own parent.
    """
    for name, key_of in LOOKUP_STRATEGIES:
        key = key_of(product)
        if not key:
            continue
        info = mapping.get(key)
        if info is not None:
            return ParentResolution(
                parent_id=info.parent_app_id,
                parent_title=info.parent_app_name,
                is_add_on=info.is_add_on,
                matched_by=name,
            )

    return ParentResolution(
        parent_id=product.key,
        parent_title=product.title,
        is_add_on=product.is_add_on,
        matched_by=SELF_MAPPED,
    )


def group_by_parent_app(products: List[ProductEarnings],
                        mapping: Mapping[str, ProductInfo]) -> List[ParentAppEntry]:
    """
    Group converted products under their parent apps.

    Add-ons are listed under the parent; anything else counts as direct
    sales of the parent. Each parent's add-ons are sorted by proceeds,
    highest first. Parents keep first-seen order (see sort_parent_apps).
    """
    apps: Dict[str, ParentAppEntry] = {}
    unmatched = 0

    for product in products:
        resolution = resolve_parent(product, mapping)
        if resolution.matched_by == SELF_MAPPED:
            unmatched += 1

        app = apps.get(resolution.parent_id)
        if app is None:
            app = ParentAppEntry(parent_id=resolution.parent_id, title=resolution.parent_title)
            apps[resolution.parent_id] = app

        if resolution.is_add_on:
            app.add_ons.append(product)
        else:
            app.direct_proceeds += product.total_proceeds
        app.total_proceeds += product.total_proceeds

    for app in apps.values():
        app.add_ons.sort(key=lambda product: product.total_proceeds, reverse=True)

    if unmatched:
        logger.debug(f"{unmatched} of {len(products)} products not found in product mapping")

    return list(apps.values())


def sort_parent_apps(apps: List[ParentAppEntry]) -> List[ParentAppEntry]:
    """Sort parents by total proceeds, highest first."""
    apps.sort(key=lambda app: app.total_proceeds, reverse=True)
    return apps


def sort_products(products: List[ProductEarnings]) -> List[ProductEarnings]:
    """Sort products by converted proceeds, highest first."""
    products.sort(key=lambda product: product.total_proceeds, reverse=True)
    return products


def group_or_flatten(products: List[ProductEarnings],
                     mapping: Optional[Mapping[str, ProductInfo]]) -> Optional[List[ParentAppEntry]]:
    """
    Group products when a mapping is available.

    Returns None when there is no mapping; callers then show the products
    as a flat list.
    """
    if not mapping:
        return None
    return sort_parent_apps(group_by_parent_app(products, mapping))
