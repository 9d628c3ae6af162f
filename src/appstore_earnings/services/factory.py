"""
Service factory functions.
Wires sources, caches and services into the container from Settings.
"""

import logging
from typing import Optional, Union

import requests

from ..config.settings import AppManagerConfig, FinanceApiConfig, Settings, get_settings
from ..sources.app_store import AppStoreMappingSource
from ..sources.auth import AppStoreTokenProvider
from ..sources.cache import FileMappingCache, FileReportCache
from ..sources.exchange_rates import FrankfurterRateSource
from ..sources.finance_reports import AppStoreFinanceReportSource, TokenProvider
from .container import ServiceContainer, get_container
from .currency_converter import CurrencyConverter
from .earnings_service import EarningsService
from .product_mapping_service import ProductMappingService

logger = logging.getLogger(__name__)


def _settings() -> Settings:
    return get_container().get("settings")


def create_http_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": "appstore-earnings"})
    return session


def create_token_provider(credentials: Union[FinanceApiConfig, AppManagerConfig]) -> Union[str, TokenProvider]:
    """A configured pre-signed token wins; otherwise tokens are signed from the .p8 key."""
    if credentials.api_token:
        logger.debug("Using pre-signed API token from configuration")
        return credentials.api_token
    return AppStoreTokenProvider(
        issuer_id=credentials.issuer_id,
        key_id=credentials.key_id,
        private_key_path=credentials.private_key_path,
    )


def create_report_source() -> AppStoreFinanceReportSource:
    """Finance report source; fails when finance credentials are incomplete."""
    finance = _settings().require_finance()
    return AppStoreFinanceReportSource(
        vendor_number=finance.vendor_number,
        token=create_token_provider(finance),
        session=get_container().get("http_session"),
        timeout=_settings().http.request_timeout,
    )


def create_rate_source() -> FrankfurterRateSource:
    http = _settings().http
    return FrankfurterRateSource(
        base_url=http.rates_url,
        session=get_container().get("http_session"),
        timeout=http.request_timeout,
    )


def create_mapping_source() -> Optional[AppStoreMappingSource]:
    """Catalog source, or None when App Manager credentials are not configured."""
    app_manager = _settings().app_manager_config()
    if app_manager is None:
        return None
    return AppStoreMappingSource(
        token=create_token_provider(app_manager),
        session=get_container().get("http_session"),
        timeout=_settings().http.request_timeout,
    )


def create_report_cache() -> FileReportCache:
    return FileReportCache(_settings().cache.reports_dir)


def create_mapping_cache() -> FileMappingCache:
    return FileMappingCache(_settings().cache.mapping_file)


def create_currency_converter() -> CurrencyConverter:
    settings = _settings()
    return CurrencyConverter(
        rate_source=get_container().get("rate_source"),
        target_currency=settings.target_currency,
        max_workers=settings.http.rate_workers,
    )


def create_product_mapping_service() -> ProductMappingService:
    container = get_container()
    return ProductMappingService(
        mapping_source=container.get("mapping_source"),
        mapping_cache=container.get("mapping_cache"),
        ttl_seconds=_settings().cache.mapping_ttl_seconds,
    )


def create_earnings_service() -> EarningsService:
    container = get_container()
    return EarningsService(
        report_source=container.get("report_source"),
        report_cache=container.get("report_cache"),
        converter=container.get("currency_converter"),
        mapping_service=container.get("product_mapping_service"),
    )


def register_default_services(container: ServiceContainer) -> None:
    """Register every service factory. Nothing is built until looked up."""
    container.register_singleton("http_session", create_http_session)
    container.register_singleton("report_source", create_report_source)
    container.register_singleton("rate_source", create_rate_source)
    container.register_singleton("mapping_source", create_mapping_source)
    container.register_singleton("report_cache", create_report_cache)
    container.register_singleton("mapping_cache", create_mapping_cache)
    container.register_singleton("currency_converter", create_currency_converter)
    container.register_singleton("product_mapping_service", create_product_mapping_service)
    container.register_singleton("earnings_service", create_earnings_service)


def initialize_services(settings: Optional[Settings] = None) -> ServiceContainer:
    """
    Configure the global container for a run.

    Args:
        settings: Resolved settings (loaded from the environment if omitted)

    Returns:
        The configured container
    """
    settings = settings or get_settings()
    container = get_container()
    container.clear_singletons()
    container.register_instance("settings", settings)
    register_default_services(container)
    logger.debug(f"Registered services: {sorted(container.list_services())}")
    return container
