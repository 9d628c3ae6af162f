# src/appstore_earnings/models/earnings.py
"""
Data models for financial report processing.
Provides structured records for every stage of the earnings pipeline.
"""
from typing import List, Dict, Any, Optional
from datetime import date, datetime
from dataclasses import dataclass, field, asdict

from .enums import ReportStatus

# Product type identifiers starting with this prefix are in-app purchases
# or subscriptions (IA1, IA9, IAY, IAC ...)
ADD_ON_PREFIX = "IA"

DEFAULT_CURRENCY = "USD"

SHORT_MONTH_NAMES = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def format_short_date(value: date) -> str:
    """Format a date as 'Oct 4, 2025'."""
    return f"{SHORT_MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


@dataclass(frozen=True)
class ReportRow:
    """One data line of Apple's Financial Report (22 tab-separated columns)."""
    start_date: str = ""
    end_date: str = ""
    upc: str = ""
    isrc_isbn: str = ""
    vendor_identifier: str = ""
    quantity: int = 0
    partner_share: float = 0.0
    extended_partner_share: float = 0.0
    partner_share_currency: str = ""
    sale_or_return: str = ""
    apple_identifier: str = ""
    developer: str = ""
    title: str = ""
    label_studio_network: str = ""
    grid: str = ""
    product_type_identifier: str = ""
    isan_other_identifier: str = ""
    country_of_sale: str = ""
    pre_order_flag: str = ""
    promo_code: str = ""
    customer_price: float = 0.0
    customer_currency: str = ""

    @property
    def product_key(self) -> str:
        """Stable product key: vendor SKU when present, else the Apple ID."""
        return self.vendor_identifier or self.apple_identifier


@dataclass
class ProductEarnings:
    """Proceeds for one product (app, IAP or subscription) across currencies."""
    key: str
    apple_identifier: str
    title: str
    sku: str
    product_type: str
    is_add_on: bool
    proceeds_by_currency: Dict[str, float] = field(default_factory=dict)
    total_proceeds: float = 0.0  # In target currency, set by the converter

    def add_proceeds(self, currency: str, amount: float) -> None:
        self.proceeds_by_currency[currency] = self.proceeds_by_currency.get(currency, 0.0) + amount

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True)
class ProductInfo:
    """Mapping entry relating a product to the app it belongs to."""
    product_id: str
    product_name: str
    parent_app_id: str
    parent_app_name: str
    is_add_on: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductInfo":
        return cls(
            product_id=str(data.get("product_id", "")),
            product_name=str(data.get("product_name", "")),
            parent_app_id=str(data.get("parent_app_id", "")),
            parent_app_name=str(data.get("parent_app_name", "")),
            is_add_on=bool(data.get("is_add_on", False)),
        )


@dataclass
class ParentAppEntry:
    """An app together with the add-on products sold under it."""
    parent_id: str
    title: str
    total_proceeds: float = 0.0
    direct_proceeds: float = 0.0
    add_ons: List[ProductEarnings] = field(default_factory=list)

    @property
    def add_on_proceeds(self) -> float:
        return sum(product.total_proceeds for product in self.add_ons)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parent_id': self.parent_id,
            'title': self.title,
            'total_proceeds': self.total_proceeds,
            'direct_proceeds': self.direct_proceeds,
            'add_ons': [product.to_dict() for product in self.add_ons],
        }


@dataclass
class PaymentEstimate:
    """
    Best-effort payment status derived from the report body.

    Apple's Finance Reports API carries no payment date, so the payment date
    is estimated from the fiscal period end plus a fixed settlement lag.
    """
    fiscal_period_start: Optional[str] = None
    fiscal_period_end: Optional[str] = None
    total_owed: Optional[float] = None
    estimated_payment_date: Optional[date] = None
    is_pending: bool = True
    payment_date: Optional[date] = None
    payment_amount: Optional[float] = None

    @property
    def estimated_payment_display(self) -> Optional[str]:
        if self.estimated_payment_date is None:
            return None
        return format_short_date(self.estimated_payment_date)

    @property
    def payment_date_display(self) -> Optional[str]:
        if self.payment_date is None:
            return None
        return format_short_date(self.payment_date)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        for key in ('estimated_payment_date', 'payment_date'):
            if result[key]:
                result[key] = result[key].isoformat()
        return result


@dataclass
class EarningsReport:
    """Result of one earnings run for a single month."""
    month: Any  # CalendarMonth
    status: ReportStatus
    target_currency: str
    message: str = ""
    products: List[ProductEarnings] = field(default_factory=list)
    apps: Optional[List[ParentAppEntry]] = None  # None when shown as a flat list
    payment: Optional[PaymentEstimate] = None
    exchange_rates: Dict[str, float] = field(default_factory=dict)
    raw_report: Optional[str] = None
    generated_at: datetime = None

    def __post_init__(self):
        if self.generated_at is None:
            self.generated_at = datetime.now()

    @property
    def is_grouped(self) -> bool:
        return self.apps is not None

    @property
    def grand_total(self) -> float:
        if self.apps is not None:
            return sum(app.total_proceeds for app in self.apps)
        return sum(product.total_proceeds for product in self.products)

    @property
    def ok(self) -> bool:
        return self.status is ReportStatus.OK
