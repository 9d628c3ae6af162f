"""
App Store Connect catalog source.

Builds the mapping from product identifiers (SKU and App Store Connect id)
to the app each product is sold under. Requires App Manager credentials.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import requests
from tqdm import tqdm

from ..exceptions import ConfigurationError, MappingFetchError
from ..models.earnings import ProductInfo
from .finance_reports import TokenProvider, as_token_provider
from .interfaces import MappingSource

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api.appstoreconnect.apple.com/v1"
PAGE_LIMIT = 200


class AppStoreMappingSource(MappingSource):
    """Walks apps, in-app purchases and subscription groups to build the mapping."""

    def __init__(self, token: Union[str, TokenProvider],
                 session: Optional[requests.Session] = None, timeout: float = 30.0,
                 base_url: str = API_BASE_URL, show_progress: bool = True):
        self._token = as_token_provider(token)
        self.session = session or requests.Session()
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.show_progress = show_progress

    def _fetch_all_pages(self, url: str) -> List[Dict[str, Any]]:
        """
        GET a collection and follow links.next until exhausted.

        Raises:
            MappingFetchError: On transport failure or a non-2xx response
        """
        items: List[Dict[str, Any]] = []
        try:
            token = self._token()
        except ConfigurationError as e:
            raise MappingFetchError(f"Could not authenticate: {e}") from e
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        next_url: Optional[str] = url

        while next_url:
            try:
                response = self.session.get(next_url, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                raise MappingFetchError(f"Request failed for {next_url}: {e}") from e

            if not response.ok:
                raise MappingFetchError(f"API Error ({response.status_code}): {response.text}")

            try:
                body = response.json()
            except ValueError as e:
                raise MappingFetchError(f"Invalid JSON from {next_url}: {e}") from e

            items.extend(body.get("data") or [])
            next_url = (body.get("links") or {}).get("next")

        return items

    def _fetch_optional(self, url: str, what: str) -> List[Dict[str, Any]]:
        """Like _fetch_all_pages, but a failure is logged and yields no items."""
        try:
            return self._fetch_all_pages(url)
        except MappingFetchError as e:
            logger.warning(f"Skipping {what}: {e}")
            return []

    def fetch_apps(self) -> Dict[str, str]:
        """App id -> app name for every app on the account."""
        apps = self._fetch_all_pages(f"{self.base_url}/apps?fields[apps]=name,bundleId&limit={PAGE_LIMIT}")
        return {app["id"]: (app.get("attributes") or {}).get("name", "") for app in apps}

    def fetch_in_app_purchases(self, app_id: str) -> List[Dict[str, Any]]:
        return self._fetch_optional(
            f"{self.base_url}/apps/{app_id}/inAppPurchasesV2"
            f"?fields[inAppPurchases]=name,productId,inAppPurchaseType&limit={PAGE_LIMIT}",
            f"in-app purchases for app {app_id}",
        )

    def fetch_subscription_groups(self, app_id: str) -> List[Dict[str, Any]]:
        return self._fetch_optional(
            f"{self.base_url}/apps/{app_id}/subscriptionGroups"
            f"?fields[subscriptionGroups]=referenceName&limit={PAGE_LIMIT}",
            f"subscription groups for app {app_id}",
        )

    def fetch_subscriptions(self, group_id: str) -> List[Dict[str, Any]]:
        return self._fetch_optional(
            f"{self.base_url}/subscriptionGroups/{group_id}/subscriptions"
            f"?fields[subscriptions]=name,productId&limit={PAGE_LIMIT}",
            f"subscriptions for group {group_id}",
        )

    @staticmethod
    def _add_product(mapping: Dict[str, ProductInfo], item: Dict[str, Any],
                     app_id: str, app_name: str) -> None:
        """Map an add-on under both its product id and its App Store Connect id."""
        attributes = item.get("attributes") or {}
        product_id = attributes.get("productId") or ""
        info = ProductInfo(
            product_id=product_id,
            product_name=attributes.get("name") or "",
            parent_app_id=app_id,
            parent_app_name=app_name,
            is_add_on=True,
        )
        if product_id:
            mapping[product_id] = info
        if item.get("id"):
            mapping[item["id"]] = info

    def build_mapping(self) -> Dict[str, ProductInfo]:
        """
        Build the complete product mapping.

        Apps map to themselves. Failures while listing one app's products are
        logged and that app's add-ons are left out; only a failure to list
        the apps themselves is fatal.

        Raises:
            MappingFetchError: If the app list could not be fetched
        """
        logger.info("Fetching apps...")
        apps = self.fetch_apps()
        logger.info(f"Found {len(apps)} apps")

        mapping: Dict[str, ProductInfo] = {
            app_id: ProductInfo(
                product_id=app_id,
                product_name=app_name,
                parent_app_id=app_id,
                parent_app_name=app_name,
                is_add_on=False,
            )
            for app_id, app_name in apps.items()
        }

        iap_count = 0
        subscription_count = 0

        with tqdm(total=len(apps), desc="Fetching in-app purchases and subscriptions",
                  unit=" apps", disable=not self.show_progress) as pbar:
            for app_id, app_name in apps.items():
                for iap in self.fetch_in_app_purchases(app_id):
                    self._add_product(mapping, iap, app_id, app_name)
                    iap_count += 1

                for group in self.fetch_subscription_groups(app_id):
                    group_id = group.get("id")
                    if not group_id:
                        continue
                    for subscription in self.fetch_subscriptions(group_id):
                        self._add_product(mapping, subscription, app_id, app_name)
                        subscription_count += 1

                pbar.update(1)

        logger.info(f"Found {iap_count} in-app purchases and {subscription_count} subscriptions")
        return mapping
