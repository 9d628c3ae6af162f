"""
Financial Report parsing service.
Turns Apple's tab-separated Financial Report into ReportRow records.

The report body interleaves data rows with summary and footer lines
(Total_Rows, Total_Amount, country subtotals ...). Those lines have too
few columns and are dropped here; the payment estimator reads them.
"""

import re
import logging
from typing import List, Optional

from ..models.earnings import ReportRow

logger = logging.getLogger(__name__)

# Column positions in the Financial Report TSV
COLUMNS = {
    'START_DATE': 0,
    'END_DATE': 1,
    'UPC': 2,
    'ISRC_ISBN': 3,
    'VENDOR_IDENTIFIER': 4,
    'QUANTITY': 5,
    'PARTNER_SHARE': 6,
    'EXTENDED_PARTNER_SHARE': 7,
    'PARTNER_SHARE_CURRENCY': 8,
    'SALE_OR_RETURN': 9,
    'APPLE_IDENTIFIER': 10,
    'ARTIST_SHOW_DEVELOPER': 11,
    'TITLE': 12,
    'LABEL_STUDIO_NETWORK': 13,
    'GRID': 14,
    'PRODUCT_TYPE_IDENTIFIER': 15,
    'ISAN_OTHER_IDENTIFIER': 16,
    'COUNTRY_OF_SALE': 17,
    'PRE_ORDER_FLAG': 18,
    'PROMO_CODE': 19,
    'CUSTOMER_PRICE': 20,
    'CUSTOMER_CURRENCY': 21,
}

MIN_COLUMNS = 12

_FLOAT_PREFIX_RE = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^\s*[-+]?\d+")


def parse_float(value: Optional[str]) -> float:
    """
    Parse the leading number of a string, defaulting to 0.0.

    Examples:
    - '12.50'  -> 12.5
    - '-3'     -> -3.0
    - '4.2USD' -> 4.2
    - ''       -> 0.0
    """
    if not value:
        return 0.0
    match = _FLOAT_PREFIX_RE.match(value)
    if not match:
        return 0.0
    try:
        return float(match.group(0))
    except ValueError:
        return 0.0


def parse_int(value: Optional[str]) -> int:
    """Parse the leading integer of a string, defaulting to 0."""
    if not value:
        return 0
    match = _INT_PREFIX_RE.match(value)
    if not match:
        return 0
    return int(match.group(0))


def _column(columns: List[str], name: str) -> str:
    index = COLUMNS[name]
    return columns[index] if index < len(columns) else ""


def parse_row(columns: List[str]) -> Optional[ReportRow]:
    """Build a ReportRow from split columns, or None for short lines."""
    if len(columns) < MIN_COLUMNS:
        return None

    return ReportRow(
        start_date=_column(columns, 'START_DATE'),
        end_date=_column(columns, 'END_DATE'),
        upc=_column(columns, 'UPC'),
        isrc_isbn=_column(columns, 'ISRC_ISBN'),
        vendor_identifier=_column(columns, 'VENDOR_IDENTIFIER'),
        quantity=parse_int(_column(columns, 'QUANTITY')),
        partner_share=parse_float(_column(columns, 'PARTNER_SHARE')),
        extended_partner_share=parse_float(_column(columns, 'EXTENDED_PARTNER_SHARE')),
        partner_share_currency=_column(columns, 'PARTNER_SHARE_CURRENCY'),
        sale_or_return=_column(columns, 'SALE_OR_RETURN'),
        apple_identifier=_column(columns, 'APPLE_IDENTIFIER'),
        developer=_column(columns, 'ARTIST_SHOW_DEVELOPER'),
        title=_column(columns, 'TITLE'),
        label_studio_network=_column(columns, 'LABEL_STUDIO_NETWORK'),
        grid=_column(columns, 'GRID'),
        product_type_identifier=_column(columns, 'PRODUCT_TYPE_IDENTIFIER'),
        isan_other_identifier=_column(columns, 'ISAN_OTHER_IDENTIFIER'),
        country_of_sale=_column(columns, 'COUNTRY_OF_SALE'),
        pre_order_flag=_column(columns, 'PRE_ORDER_FLAG'),
        promo_code=_column(columns, 'PROMO_CODE'),
        customer_price=parse_float(_column(columns, 'CUSTOMER_PRICE')),
        customer_currency=_column(columns, 'CUSTOMER_CURRENCY'),
    )


def split_lines(text: str) -> List[str]:
    """Split report text into lines, tolerating CRLF line endings."""
    return [line.rstrip("\r") for line in text.split("\n")]


def parse_finance_report(text: str) -> List[ReportRow]:
    """
    Parse Financial Report TSV content into rows.

    The first line is the header and is always skipped. Blank lines and
    lines with fewer than MIN_COLUMNS columns are dropped silently.

    Args:
        text: Raw report content

    Returns:
        ReportRow list in input order
    """
    lines = split_lines(text.strip())
    if len(lines) <= 1:
        return []

    rows = []
    for line in lines[1:]:
        if not line.strip():
            continue
        row = parse_row(line.split("\t"))
        if row is not None:
            rows.append(row)

    logger.debug(f"Parsed {len(rows)} rows from {len(lines) - 1} report lines")
    return rows
