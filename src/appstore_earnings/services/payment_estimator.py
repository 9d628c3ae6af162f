"""
Payment estimation service.

Apple's Finance Reports API does not say when (or whether) a period was
paid. This module scans the raw report for the Total_Amount footer and the
fiscal period dates and estimates the payment from Apple's usual schedule
of roughly 33 days after the fiscal month ends. The result is an
approximation, never the actual bank payment date.
"""

import re
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from ..models.earnings import PaymentEstimate
from .report_parser import parse_float, split_lines

logger = logging.getLogger(__name__)

TOTAL_AMOUNT_LABEL = "Total_Amount"
PAYMENT_LAG_DAYS = 33

_REPORT_DATE_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")


def parse_report_date(value: str) -> Optional[date]:
    """Parse an MM/DD/YYYY report date, or None when invalid."""
    if not value or not _REPORT_DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, "%m/%d/%Y").date()
    except ValueError:
        return None


def parse_payment_info(text: str, now: Union[date, datetime]) -> Optional[PaymentEstimate]:
    """
    Estimate payment status from raw report text.

    Every line is scanned. The Total_Amount footer supplies the amount owed
    and the first line whose first two columns are MM/DD/YYYY dates supplies
    the fiscal period.

    Args:
        text: Raw report content
        now: Current time used to decide pending vs paid

    Returns:
        PaymentEstimate, or None when the report holds neither a total nor
        a fiscal period end
    """
    total_owed = None
    period_start = None
    period_end = None

    for line in split_lines(text):
        columns = line.split("\t")
        if len(columns) < 2:
            continue

        first, second = columns[0].strip(), columns[1].strip()

        if first == TOTAL_AMOUNT_LABEL:
            total_owed = parse_float(second)
            continue

        if period_end is None and _REPORT_DATE_RE.match(first) and _REPORT_DATE_RE.match(second):
            period_start, period_end = first, second

    if total_owed is None and period_end is None:
        logger.debug("No Total_Amount line or fiscal period found in report")
        return None

    estimate = PaymentEstimate(
        fiscal_period_start=period_start,
        fiscal_period_end=period_end,
        total_owed=total_owed,
    )

    end_date = parse_report_date(period_end) if period_end else None
    if end_date is None:
        return estimate

    today = now.date() if isinstance(now, datetime) else now
    estimate.estimated_payment_date = end_date + timedelta(days=PAYMENT_LAG_DAYS)
    estimate.is_pending = today <= estimate.estimated_payment_date

    if not estimate.is_pending:
        estimate.payment_date = estimate.estimated_payment_date
        estimate.payment_amount = total_owed

    return estimate
