"""Shared pytest fixtures for the test suite."""

import pytest

from appstore_earnings.services.container import reset_container

HEADER = "\t".join([
    "Start Date", "End Date", "UPC", "ISRC/ISBN", "Vendor Identifier", "Quantity",
    "Partner Share", "Extended Partner Share", "Partner Share Currency", "Sales or Return",
    "Apple Identifier", "Artist/Show/Developer/Author", "Title", "Label/Studio/Network/Developer/Publisher",
    "Grid", "Product Type Identifier", "ISAN/Other Identifier", "Country Of Sale",
    "Pre-order Flag", "Promo Code", "Customer Price", "Customer Currency",
])


def build_row(sku, amount, currency="USD", title=None, apple_id="", product_type="1F",
              start="09/01/2025", end="09/30/2025", quantity=1, country="US"):
    """One 22-column Financial Report data line."""
    return "\t".join([
        start, end, "", "", sku, str(quantity),
        str(amount), str(amount), currency, "S",
        apple_id, "Example Developer", title or sku, "", "",
        product_type, "", country, "", "", str(amount), currency,
    ])


def build_report(rows, footer=("Total_Rows\t{n}", "Total_Amount\t208.66")):
    lines = [HEADER] + list(rows)
    lines.extend(line.format(n=len(rows)) for line in footer)
    return "\n".join(lines) + "\n"


@pytest.fixture
def make_row():
    return build_row


@pytest.fixture
def make_report():
    return build_report


@pytest.fixture
def sample_report():
    """Two apps and one in-app purchase across USD and EUR."""
    return build_report([
        build_row("A1", "100.00", title="App One", apple_id="1001"),
        build_row("A1IAP", "50.00", title="Gems Pack", apple_id="2001", product_type="IA1"),
        build_row("B1", "20.00", currency="EUR", title="App Two", apple_id="3001", country="DE"),
    ])


@pytest.fixture(autouse=True)
def fresh_container():
    """Each test starts with an empty global service container."""
    reset_container()
    yield
    reset_container()
