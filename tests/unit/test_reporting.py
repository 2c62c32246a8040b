"""Tests for payment routing, error reports and display formatting."""

from __future__ import annotations

import csv
from datetime import date, datetime
from decimal import Decimal

import pytest

from invoiceforge.config import FormattingConfig
from invoiceforge.models import InvoiceStatus, PaymentStatus
from invoiceforge.reporting.error_report import (
    HEADERS,
    error_report_rows,
    render_error_report,
    write_error_report,
)
from invoiceforge.reporting.formatting import (
    currency_code_for_symbol,
    format_currency,
    format_date,
    format_number,
    get_currency_symbol,
    sanitize_filename,
)
from invoiceforge.reporting.payment import (
    generatable,
    is_invoice_paid,
    resolve_payment_status,
    split_by_payment,
)
from invoiceforge.validation.validator import validate_invoices

TODAY = date(2024, 6, 1)


class TestResolvePaymentStatus:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Paid", PaymentStatus.PAID),
            ("completed", PaymentStatus.PAID),
            ("UNPAID", PaymentStatus.UNPAID),
            ("draft", PaymentStatus.PENDING),
            ("Sent", PaymentStatus.PENDING),
            ("overdue", PaymentStatus.OVERDUE),
            ("partial", PaymentStatus.PARTIAL),
        ],
    )
    def test_status_text(self, make_invoice, text, expected):
        assert resolve_payment_status(make_invoice(source_status=text), TODAY) == expected

    def test_status_text_beats_amounts(self, make_invoice):
        invoice = make_invoice(source_status="unpaid", amount_paid=Decimal("30"))
        assert resolve_payment_status(invoice, TODAY) == PaymentStatus.UNPAID

    def test_full_payment(self, make_invoice):
        invoice = make_invoice(amount_paid=Decimal("30"), balance_due=Decimal("0"))
        assert resolve_payment_status(invoice, TODAY) == PaymentStatus.PAID

    def test_partial_payment(self, make_invoice):
        invoice = make_invoice(amount_paid=Decimal("10"), balance_due=Decimal("20"))
        assert resolve_payment_status(invoice, TODAY) == PaymentStatus.PARTIAL

    def test_zero_balance(self, make_invoice):
        assert resolve_payment_status(make_invoice(balance_due=Decimal("0")), TODAY) == PaymentStatus.PAID

    def test_past_due_date(self, make_invoice):
        invoice = make_invoice(due_date=datetime(2024, 5, 1))
        assert resolve_payment_status(invoice, TODAY) == PaymentStatus.OVERDUE

    def test_future_due_date(self, make_invoice):
        invoice = make_invoice(due_date=datetime(2024, 7, 1))
        assert resolve_payment_status(invoice, TODAY) == PaymentStatus.UNPAID

    def test_default_unpaid(self, make_invoice):
        assert resolve_payment_status(make_invoice(), TODAY) == PaymentStatus.UNPAID


class TestRouting:
    def test_error_invoices_are_not_generated(self, make_invoice):
        good = make_invoice()
        bad = make_invoice(invoice_number="INV-002", status=InvoiceStatus.ERROR)

        assert generatable([good, bad]) == [good]

    def test_split_by_payment(self, make_invoice):
        paid = make_invoice(source_status="paid")
        open_ = make_invoice(invoice_number="INV-002")
        broken = make_invoice(invoice_number="INV-003", source_status="paid", status=InvoiceStatus.ERROR)

        buckets = split_by_payment([paid, open_, broken], TODAY)

        assert buckets == {"paid": [paid], "unpaid": [open_]}

    def test_recorded_payment_status_wins(self, make_invoice):
        invoice = make_invoice(source_status="paid", payment_status=PaymentStatus.UNPAID)
        assert not is_invoice_paid(invoice, TODAY)


class TestErrorReport:
    @pytest.fixture
    def validated(self, make_invoice):
        invoices = [make_invoice(), make_invoice(invoice_number="", row_numbers=[7])]
        validation = validate_invoices(invoices, now=datetime(2024, 6, 1))
        return invoices, validation

    def test_only_error_invoices_reported(self, validated):
        invoices, validation = validated

        rows = list(error_report_rows(invoices, validation))

        assert rows == [
            [
                "7",
                "",
                "",
                "Row 7: Invoice number is required",
                "",
                "Fill in the invoice number column",
            ]
        ]

    def test_rows_without_validation_result(self, validated):
        invoices, _ = validated

        rows = list(error_report_rows(invoices))

        assert rows[0][3] == "Row 7: Invoice number is required"
        assert rows[0][5] == ""

    def test_render_has_header(self, validated):
        invoices, validation = validated

        lines = render_error_report(invoices, validation).splitlines()

        assert lines[0] == ",".join(HEADERS)
        assert len(lines) == 2

    def test_write_error_report(self, validated, tmp_path):
        invoices, validation = validated
        path = tmp_path / "errors.csv"

        count = write_error_report(path, invoices, validation)

        assert count == 1
        with path.open(newline="", encoding="utf-8") as fh:
            rows = list(csv.reader(fh))
        assert rows[0] == HEADERS
        assert rows[1][0] == "7"


class TestFormatting:
    def test_format_number(self):
        assert format_number(Decimal("1234567.891")) == "1,234,567.89"
        assert format_number(Decimal("0.005")) == "0.01"
        assert format_number(-1234.5) == "-1,234.50"

    def test_format_number_european_separators(self):
        config = FormattingConfig(decimal_separator=",", thousands_separator=".")
        assert format_number(Decimal("1234.5"), config) == "1.234,50"

    def test_format_number_without_decimals(self):
        assert format_number(Decimal("1234.5"), FormattingConfig(decimal_places=0)) == "1,235"

    def test_format_currency(self):
        assert format_currency(Decimal("1234.5"), "EUR") == "€1,234.50"
        assert format_currency(Decimal("10"), "SEK") == "10.00 kr"
        assert format_currency(Decimal("10"), "XYZ") == "XYZ10.00"

    def test_currency_symbols(self):
        assert get_currency_symbol("gbp") == "£"
        assert get_currency_symbol("XYZ") == "XYZ"
        assert currency_code_for_symbol("₹") == "INR"
        assert currency_code_for_symbol("?") is None

    @pytest.mark.parametrize(
        ("layout", "expected"),
        [
            ("MM/DD/YYYY", "01/05/2024"),
            ("DD/MM/YYYY", "05/01/2024"),
            ("YYYY-MM-DD", "2024-01-05"),
            ("DD MMM YYYY", "05 Jan 2024"),
            ("MMMM DD, YYYY", "January 05, 2024"),
        ],
    )
    def test_format_date(self, layout, expected):
        assert format_date(date(2024, 1, 5), layout) == expected

    def test_format_date_default_layout(self):
        assert format_date(datetime(2024, 12, 25)) == "12/25/2024"

    def test_sanitize_filename(self):
        assert sanitize_filename('Invoice: A/B  1') == "Invoice_A_B_1"
        assert len(sanitize_filename("x" * 300)) == 200
