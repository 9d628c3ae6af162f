"""
Earnings report service.

Runs the full pipeline for one calendar month:
load (cache or API) -> parse -> aggregate -> convert -> estimate payment -> group.
"""

import logging
from datetime import datetime
from typing import Optional

from ..exceptions import NoReportAvailableError, ReportFetchError
from ..models.earnings import EarningsReport
from ..models.enums import ReportStatus
from ..sources.cache import FileReportCache
from ..sources.interfaces import ReportSource
from ..utils.fiscal_calendar import CalendarMonth
from .currency_converter import CurrencyConverter
from .payment_estimator import parse_payment_info
from .product_aggregator import aggregate_by_product
from .product_mapping_service import ProductMappingService
from .report_parser import parse_finance_report
from .taxonomy_grouper import group_or_flatten, sort_products

logger = logging.getLogger(__name__)


class EarningsService:
    """Builds an EarningsReport for a calendar month."""

    def __init__(self, report_source: ReportSource, report_cache: FileReportCache,
                 converter: CurrencyConverter, mapping_service: Optional[ProductMappingService] = None):
        self.report_source = report_source
        self.report_cache = report_cache
        self.converter = converter
        self.mapping_service = mapping_service

    @property
    def target_currency(self) -> str:
        return self.converter.target_currency

    def load_report(self, month: CalendarMonth, use_cache: bool = True) -> str:
        """
        Return raw report text, from cache when possible.

        Raises:
            NoReportAvailableError: If Apple has no report for the month
            ReportFetchError: If the download failed
        """
        if use_cache:
            cached = self.report_cache.read_report(month)
            if cached is not None:
                logger.info(f"Using cached report for {month.display_name}")
                return cached
            logger.debug(f"No cached report for {month.cache_key}")

        text = self.report_source.fetch_report(month)

        if use_cache:
            try:
                self.report_cache.write_report(month, text)
                logger.info("Report cached for future use")
            except OSError as e:
                logger.warning(f"Could not cache report for {month.display_name}: {e}")

        return text

    def build_report(self, month: CalendarMonth, use_cache: bool = True,
                     refresh_mapping: bool = False, now: Optional[datetime] = None) -> EarningsReport:
        """
        Build the earnings report for a month.

        Fetch failures and empty periods are reported through the returned
        status rather than raised.
        """
        now = now or datetime.now()

        def result(status: ReportStatus, message: str = "", **kwargs) -> EarningsReport:
            return EarningsReport(month=month, status=status, target_currency=self.target_currency,
                                  message=message, generated_at=now, **kwargs)

        try:
            text = self.load_report(month, use_cache=use_cache)
        except NoReportAvailableError as e:
            logger.info(str(e))
            return result(ReportStatus.NOT_FOUND, str(e))
        except ReportFetchError as e:
            logger.error(f"Failed to fetch report for {month.display_name}: {e}")
            return result(ReportStatus.FETCH_FAILED, str(e))

        rows = parse_finance_report(text)
        logger.debug(f"Parsed {len(rows)} report rows")
        if not rows:
            return result(ReportStatus.EMPTY_REPORT, "No financial data found for this period.",
                          raw_report=text)

        products = aggregate_by_product(rows)
        if not products:
            return result(ReportStatus.NO_EARNINGS, "No earnings for this period.", raw_report=text)

        logger.info(f"Converting currencies to {self.target_currency}...")
        rates = self.converter.convert(products)
        sort_products(products)

        payment = parse_payment_info(text, now)

        mapping = None
        if self.mapping_service is not None:
            mapping = self.mapping_service.get_product_mapping(refresh=refresh_mapping,
                                                               now=now.timestamp())
        apps = group_or_flatten(products, mapping)

        return result(
            ReportStatus.OK,
            products=products,
            apps=apps,
            payment=payment,
            exchange_rates=rates,
            raw_report=text,
        )
