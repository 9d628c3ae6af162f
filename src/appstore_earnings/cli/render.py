"""
Text rendering for earnings reports.
Every function returns lines; printing is left to the caller.
"""

from typing import List, Optional

from ..models.earnings import EarningsReport, ParentAppEntry, PaymentEstimate, ProductEarnings

APP_TITLE_WIDTH = 32
CHILD_TITLE_WIDTH = 28
FLAT_TITLE_WIDTH = 40
APP_SALES_LABEL = "(App Sales)"


def format_currency(amount: float, currency: str = "USD") -> str:
    """Format an amount as 'USD 1,234.56'."""
    return f"{currency} {amount:,.2f}"


def truncate(text: str, width: int) -> str:
    """Shorten text to `width` characters, ending in '...' when cut."""
    if len(text) <= width:
        return text
    return text[:width - 3] + "..."


def render_tree(apps: List[ParentAppEntry], currency: str) -> List[str]:
    lines = []
    grand_total = 0.0

    for i, app in enumerate(apps):
        is_last_app = i == len(apps) - 1
        grand_total += app.total_proceeds

        prefix = "└── " if is_last_app else "├── "
        title = truncate(app.title, APP_TITLE_WIDTH)
        lines.append(f"{prefix}{title:<35} {format_currency(app.total_proceeds, currency):>16}")

        child_prefix = "    " if is_last_app else "│   "

        if app.direct_proceeds > 0:
            branch = "├── " if app.add_ons else "└── "
            lines.append(
                f"{child_prefix}{branch}{APP_SALES_LABEL:<31} {format_currency(app.direct_proceeds, currency):>16}"
            )

        for j, add_on in enumerate(app.add_ons):
            branch = "└── " if j == len(app.add_ons) - 1 else "├── "
            title = truncate(add_on.title, CHILD_TITLE_WIDTH)
            lines.append(
                f"{child_prefix}{branch}{title:<31} {format_currency(add_on.total_proceeds, currency):>16}"
            )

        if not is_last_app:
            lines.append("│")

    lines.append("")
    lines.append("─" * 57)
    lines.append(f"{'TOTAL':>39} {format_currency(grand_total, currency):>16}")
    return lines


def render_flat(products: List[ProductEarnings], currency: str) -> List[str]:
    lines = []
    total = 0.0

    for product in products:
        title = truncate(product.title, FLAT_TITLE_WIDTH)
        label = "[IAP]" if product.is_add_on else "[App]"
        lines.append(f"  {title:<42} {label} {format_currency(product.total_proceeds, currency):>14}")
        total += product.total_proceeds

    lines.append("")
    lines.append("─" * 65)
    lines.append(f"{'TOTAL':>50} {format_currency(total, currency):>14}")
    return lines


def render_payment_summary(payment: Optional[PaymentEstimate], total: float, currency: str) -> List[str]:
    """
    Payment footer.

    The amount shown is the converted grand total, so it is approximate
    (exchange rates move between the period end and the payment).
    """
    if payment is None:
        return ["", "  Payment Info: Not available", ""]

    amount = format_currency(total, currency)
    lines = [""]

    if payment.is_pending:
        lines.append("  Payment Status: Pending")
        lines.append(f"  Amount: ~{amount}")
        if payment.estimated_payment_display:
            lines.append(f"  Expected Payment: ~{payment.estimated_payment_display}")
    else:
        lines.append("  Payment Status: Paid (estimated)")
        if payment.payment_date_display:
            lines.append(f"  Payment Date: ~{payment.payment_date_display}")
        lines.append(f"  Amount: ~{amount}")

    lines.append("")
    return lines


def render_report(report: EarningsReport) -> List[str]:
    """Full output for a successful report: header, body and payment footer."""
    currency = report.target_currency
    lines = ["", f"  Earnings for {report.month.display_name}", ""]

    if report.is_grouped:
        lines.extend(render_tree(report.apps, currency))
    else:
        lines.extend(render_flat(report.products, currency))

    lines.extend(render_payment_summary(report.payment, report.grand_total, currency))
    return lines
