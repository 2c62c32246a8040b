"""Pytest configuration and fixtures for InvoiceForge tests.

Provides in-memory workbooks and invoice factories.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from invoiceforge.config import reset_config
from invoiceforge.ingestion.workbook import SheetData, Workbook
from invoiceforge.models import Customer, Invoice, InvoiceLineItem


@pytest.fixture(autouse=True)
def fresh_config():
    """Re-read configuration from the (monkeypatched) environment per test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def round_trip_workbook() -> Workbook:
    """Single sheet with common accounting-export headers."""
    sheet = SheetData(
        name="Sheet1",
        headers=["Invoice No", "Bill To", "Item", "Qty", "Rate"],
        rows=[{"Invoice No": "INV-001", "Bill To": "Acme Co", "Item": "Widget", "Qty": "3", "Rate": "10"}],
    )
    return Workbook.from_sheets(sheet)


@pytest.fixture
def multi_row_workbook() -> Workbook:
    """Two invoices, the first spread over two rows."""
    sheet = SheetData.from_records(
        "Invoices",
        [
            {"Invoice Number": "A", "Customer": "Acme", "Description": "x", "Quantity": 1, "Unit Price": 10},
            {"Invoice Number": "A", "Customer": "Acme", "Description": "y", "Quantity": 2, "Unit Price": 5},
            {"Invoice Number": "B", "Customer": "Globex", "Description": "z", "Quantity": 1, "Unit Price": 7},
        ],
    )
    return Workbook.from_sheets(sheet)


@pytest.fixture
def relational_workbook() -> Workbook:
    """Customers / invoices / items sheets linked by id columns."""
    return Workbook.from_sheets(
        SheetData.from_records("Customers", [{"cust_id": "C1", "name": "Acme"}]),
        SheetData.from_records(
            "Invoices",
            [{"invoice_id": "I1", "customer_id": "C1", "invoiceNumber": "INV-1"}],
        ),
        SheetData.from_records(
            "Items",
            [{"invoice_id": "I1", "description": "Widget", "qty": 2, "price": 5}],
        ),
    )


@pytest.fixture
def make_invoice():
    """Factory for clean invoices; keyword overrides replace defaults."""

    def _make(**overrides) -> Invoice:
        data = {
            "invoice_number": "INV-001",
            "customer": Customer(id="C1", name="Acme Co", email="billing@acme.test"),
            "issue_date": datetime(2024, 1, 15),
            "line_items": [
                InvoiceLineItem(
                    description="Widget",
                    quantity=Decimal("3"),
                    unit_price=Decimal("10"),
                    line_total=Decimal("30"),
                )
            ],
            "subtotal": Decimal("30"),
            "grand_total": Decimal("30"),
            "row_numbers": [2],
        }
        data.update(overrides)
        return Invoice(**data)

    return _make
