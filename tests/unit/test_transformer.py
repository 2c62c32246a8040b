"""Tests for the row-to-invoice transformer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from invoiceforge.config import TransformConfig
from invoiceforge.ingestion.workbook import SheetData, SheetNotFoundError, Workbook
from invoiceforge.mapping.column_mapper import detect_column_mappings
from invoiceforge.mapping.models import ColumnMapping, ExcelFormat
from invoiceforge.models import PLACEHOLDER_DESCRIPTION, UNKNOWN_CUSTOMER, DiscountType
from invoiceforge.transform import transformer as transformer_module
from invoiceforge.transform.transformer import (
    DataTransformer,
    calculate_total_discount,
    create_field_map,
    group_by_invoice_number,
    transform_to_invoices,
)


def _mappings(**field_to_column) -> list[ColumnMapping]:
    return [ColumnMapping(column, field, 100) for field, column in field_to_column.items()]


def _single(rows, **field_to_column):
    """Transform one sheet of dict rows with explicit field -> column mappings."""
    workbook = Workbook.from_sheets(SheetData.from_records("Sheet1", rows))
    return transform_to_invoices(
        workbook, _mappings(**field_to_column), ExcelFormat.FLAT_SINGLE_ROW
    )


class TestSingleSheet:
    def test_round_trip(self, round_trip_workbook):
        sheet = round_trip_workbook.sheet()
        mappings = detect_column_mappings(sheet.headers, sheet.rows)

        result = transform_to_invoices(round_trip_workbook, mappings, ExcelFormat.FLAT_SINGLE_ROW)

        assert result.warnings == []
        [invoice] = result.invoices
        assert invoice.invoice_number == "INV-001"
        assert invoice.customer.name == "Acme Co"
        [item] = invoice.line_items
        assert item.description == "Widget"
        assert item.quantity == Decimal("3")
        assert item.line_total == Decimal("30")
        assert invoice.subtotal == Decimal("30")
        assert invoice.grand_total == Decimal("30")
        assert invoice.row_numbers == [2]

    def test_rows_grouped_by_invoice_number(self):
        rows = [
            {"inv": "A", "customer": "X", "description": "d1", "qty": "1", "price": "10"},
            {"inv": "A", "customer": "X", "description": "d2", "qty": "2", "price": "5"},
            {"inv": "B", "customer": "Y", "description": "d3", "qty": "1", "price": "7"},
        ]

        result = _single(
            rows,
            invoiceNumber="inv",
            customerName="customer",
            description="description",
            quantity="qty",
            unitPrice="price",
        )

        assert [i.invoice_number for i in result.invoices] == ["A", "B"]
        first, second = result.invoices
        assert len(first.line_items) == 2
        assert first.subtotal == Decimal("20")
        assert first.row_numbers == [2, 3]
        assert second.grand_total == Decimal("7")
        assert second.row_numbers == [4]

    def test_detected_multi_row_layout(self, multi_row_workbook):
        sheet = multi_row_workbook.sheet()
        mappings = detect_column_mappings(sheet.headers, sheet.rows)

        result = transform_to_invoices(multi_row_workbook, mappings, ExcelFormat.FLAT_MULTI_ROW)

        assert [len(i.line_items) for i in result.invoices] == [2, 1]
        assert result.invoices[0].customer.name == "Acme"

    def test_transform_is_repeatable(self):
        rows = [{"No": "INV-1", "Date": "2024-01-15", "Name": "Acme", "Desc": "Widget", "Price": "4"}]
        field_map = dict(
            invoiceNumber="No", issueDate="Date", customerName="Name", description="Desc", unitPrice="Price"
        )

        [first] = _single(rows, **field_map).invoices
        [second] = _single(rows, **field_map).invoices

        # Customer ids are generated when the sheet has none
        exclude = {"customer": {"id"}}
        assert first.model_dump(exclude=exclude) == second.model_dump(exclude=exclude)

    def test_empty_rows_skipped_and_missing_numbers_autogenerated(self):
        rows = [
            {"No": "INV-1", "Desc": "a"},
            {"No": None, "Desc": None},
            {"No": None, "Desc": "b"},
        ]

        result = _single(rows, invoiceNumber="No", description="Desc")

        assert [i.invoice_number for i in result.invoices] == ["INV-1", "AUTO-3"]
        assert result.invoices[1].row_numbers == [4]

    def test_defaults_for_unmapped_fields(self):
        result = _single([{"No": "INV-1"}], invoiceNumber="No")

        [invoice] = result.invoices
        assert invoice.customer.name == UNKNOWN_CUSTOMER
        assert invoice.customer.id
        assert invoice.currency == "USD"
        assert invoice.line_items[0].description == PLACEHOLDER_DESCRIPTION
        assert invoice.line_items[0].quantity == Decimal("1")
        assert invoice.amount_paid is None
        assert invoice.balance_due is None

    def test_failed_group_becomes_warning(self):
        workbook = Workbook.from_sheets(SheetData.from_records("Sheet1", [{"No": "INV-1"}]))
        transformer = DataTransformer(TransformConfig(default_currency="DOLLARS"))

        result = transformer.transform(workbook, _mappings(invoiceNumber="No"), ExcelFormat.FLAT_SINGLE_ROW)

        assert result.invoices == []
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("Failed to process invoice INV-1:")

    def test_missing_sheet_raises(self, round_trip_workbook):
        with pytest.raises(SheetNotFoundError):
            transform_to_invoices(
                round_trip_workbook, [], ExcelFormat.FLAT_SINGLE_ROW, selected_sheets=["Nope"]
            )

    def test_empty_workbook(self):
        result = transform_to_invoices(Workbook(), [], ExcelFormat.FLAT_SINGLE_ROW)

        assert result.invoices == []
        assert result.warnings == []


class TestLineItems:
    @pytest.fixture
    def transformer(self) -> DataTransformer:
        return DataTransformer(TransformConfig())

    @pytest.mark.parametrize("qty", [None, "", "0", 0])
    def test_quantity_defaults_to_one(self, transformer, qty):
        item = transformer.extract_line_item({"Q": qty, "P": "5"}, {"quantity": "Q", "unitPrice": "P"})

        assert item.quantity == Decimal("1")
        assert item.line_total == Decimal("5")

    def test_explicit_line_total_wins(self, transformer):
        item = transformer.extract_line_item(
            {"Q": "2", "P": "5", "T": "12"}, {"quantity": "Q", "unitPrice": "P", "lineTotal": "T"}
        )
        assert item.line_total == Decimal("12")

    def test_tax_rate_applied_to_line_total(self, transformer):
        item = transformer.extract_line_item(
            {"P": "100", "R": "10"}, {"unitPrice": "P", "taxRate": "R"}
        )

        assert item.tax_rate == Decimal("10")
        assert item.tax_amount == Decimal("10")

    def test_explicit_tax_amount_wins(self, transformer):
        item = transformer.extract_line_item(
            {"P": "100", "R": "10", "A": "7"}, {"unitPrice": "P", "taxRate": "R", "taxAmount": "A"}
        )
        assert item.tax_amount == Decimal("7")

    def test_small_discount_is_percentage(self, transformer):
        item = transformer.extract_line_item({"P": "50", "D": "10"}, {"unitPrice": "P", "discount": "D"})
        assert item.discount.type == DiscountType.PERCENTAGE

    def test_large_discount_is_fixed(self, transformer):
        item = transformer.extract_line_item({"P": "500", "D": "150"}, {"unitPrice": "P", "discount": "D"})
        assert item.discount.type == DiscountType.FIXED

    def test_discount_threshold_configurable(self):
        transformer = DataTransformer(TransformConfig(fixed_discount_threshold=Decimal("5")))
        item = transformer.extract_line_item({"P": "50", "D": "10"}, {"unitPrice": "P", "discount": "D"})
        assert item.discount.type == DiscountType.FIXED

    def test_total_discount(self, transformer):
        percentage = transformer.extract_line_item(
            {"Q": "2", "P": "50", "D": "10"}, {"quantity": "Q", "unitPrice": "P", "discount": "D"}
        )
        fixed = transformer.extract_line_item({"P": "500", "D": "150"}, {"unitPrice": "P", "discount": "D"})

        assert calculate_total_discount([percentage, fixed]) == Decimal("160")


class TestTotals:
    FIELDS = dict(invoiceNumber="No", description="Desc", unitPrice="Price")

    def test_discount_and_tax_in_grand_total(self):
        rows = [{"No": "INV-1", "Desc": "a", "Price": "100", "Disc": "10", "Rate": "5"}]

        [invoice] = _single(rows, **self.FIELDS, discount="Disc", taxRate="Rate").invoices

        assert invoice.subtotal == Decimal("100")
        assert invoice.total_discount == Decimal("10")
        assert invoice.total_tax == Decimal("5")
        assert invoice.grand_total == Decimal("95")

    def test_explicit_totals_override(self):
        rows = [{"No": "INV-1", "Desc": "a", "Price": "100", "Sub": "90", "Tax": "9", "Total": "99"}]

        [invoice] = _single(
            rows, **self.FIELDS, invoiceSubtotal="Sub", invoiceTax="Tax", invoiceTotal="Total"
        ).invoices

        assert invoice.subtotal == Decimal("90")
        assert invoice.total_tax == Decimal("9")
        assert invoice.grand_total == Decimal("99")

    def test_zero_explicit_total_ignored(self):
        rows = [{"No": "INV-1", "Desc": "a", "Price": "100", "Total": "0"}]

        [invoice] = _single(rows, **self.FIELDS, invoiceTotal="Total").invoices

        assert invoice.grand_total == Decimal("100")

    def test_total_mismatch_warning_is_opt_in(self):
        workbook = Workbook.from_sheets(
            SheetData.from_records("Sheet1", [{"No": "INV-1", "Desc": "a", "Price": "100", "Total": "120"}])
        )
        mappings = _mappings(**self.FIELDS, invoiceTotal="Total")

        quiet = DataTransformer(TransformConfig()).transform(
            workbook, mappings, ExcelFormat.FLAT_SINGLE_ROW
        )
        loud = DataTransformer(TransformConfig(warn_on_total_mismatch=True)).transform(
            workbook, mappings, ExcelFormat.FLAT_SINGLE_ROW
        )

        assert quiet.warnings == []
        assert len(loud.warnings) == 1
        assert loud.warnings[0].startswith("Invoice INV-1: explicit total 120 differs")
        assert loud.invoices[0].grand_total == Decimal("120")

    def test_payment_fields(self):
        rows = [
            {
                "No": "INV-1",
                "Desc": "a",
                "Price": "100",
                "Paid": "40",
                "Status": "Partial",
                "Due": "2024-02-15",
                "Cur": "€",
            }
        ]

        [invoice] = _single(
            rows, **self.FIELDS, amountPaid="Paid", status="Status", dueDate="Due", currency="Cur"
        ).invoices

        assert invoice.amount_paid == Decimal("40")
        assert invoice.balance_due == Decimal("60")
        assert invoice.source_status == "Partial"
        assert invoice.due_date == datetime(2024, 2, 15)
        assert invoice.currency == "EUR"


class TestMultiSheet:
    SHEETS = ["Customers", "Invoices", "Items"]

    def test_relational_join(self, relational_workbook):
        result = transform_to_invoices(
            relational_workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS
        )

        assert result.warnings == []
        [invoice] = result.invoices
        assert invoice.invoice_number == "INV-1"
        assert invoice.customer.name == "Acme"
        assert invoice.customer.id == "C1"
        [item] = invoice.line_items
        assert item.description == "Widget"
        assert item.line_total == Decimal("10")
        assert invoice.grand_total == Decimal("10")
        assert invoice.row_numbers == [2]
        assert result.sheet_roles.items == "Items"
        assert len(result.relationships) == 1

    def test_join_keys_ignore_case_and_whitespace(self):
        workbook = Workbook.from_sheets(
            SheetData.from_records("Customers", [{"customer_id": " c1 ", "name": "Acme"}]),
            SheetData.from_records(
                "Invoices", [{"invoice_id": "I1", "customer_id": "C1", "invoiceNumber": "INV-1"}]
            ),
            SheetData.from_records("Items", [{"invoice_id": "i1", "description": "Widget", "price": 5}]),
        )

        result = transform_to_invoices(workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS)

        [invoice] = result.invoices
        assert invoice.customer.name == "Acme"
        assert invoice.line_items[0].description == "Widget"

    def test_missing_customer_warns(self):
        workbook = Workbook.from_sheets(
            SheetData.from_records("Customers", [{"customer_id": "C1", "name": "Acme"}]),
            SheetData.from_records(
                "Invoices", [{"invoice_id": "I1", "customer_id": "C9", "invoiceNumber": "INV-1"}]
            ),
            SheetData.from_records("Items", [{"invoice_id": "I1", "description": "Widget", "price": 5}]),
        )

        result = transform_to_invoices(workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS)

        assert result.warnings == [
            'Invoice INV-1: Customer ID "C9" not found in customers sheet.'
        ]
        assert result.invoices[0].customer.name == UNKNOWN_CUSTOMER

    def test_invoice_without_items_gets_placeholder(self):
        workbook = Workbook.from_sheets(
            SheetData.from_records("Customers", [{"customer_id": "C1", "name": "Acme"}]),
            SheetData.from_records(
                "Invoices", [{"invoice_id": "I2", "customer_id": "C1", "invoiceNumber": "INV-2"}]
            ),
            SheetData.from_records("Items", [{"invoice_id": "I1", "description": "Widget", "price": 5}]),
        )

        result = transform_to_invoices(workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS)

        assert result.warnings == ["Invoice INV-2 has no line items."]
        [item] = result.invoices[0].line_items
        assert item.description == PLACEHOLDER_DESCRIPTION
        assert item.line_total == Decimal("0")

    def test_failing_row_becomes_warning(self, monkeypatch):
        real_normalize_currency = transformer_module.normalize_currency

        def strict_currency(value, default="USD"):
            if value == "bad":
                raise ValueError("unreadable currency")
            return real_normalize_currency(value, default)

        monkeypatch.setattr(transformer_module, "normalize_currency", strict_currency)
        workbook = Workbook.from_sheets(
            SheetData.from_records("Customers", [{"customer_id": "C1", "name": "Acme"}]),
            SheetData.from_records(
                "Invoices",
                [
                    {"invoice_id": "I1", "customer_id": "C1", "invoiceNumber": "INV-1", "currency": "USD"},
                    {"invoice_id": "I2", "customer_id": "C1", "invoiceNumber": "INV-2", "currency": "bad"},
                    {"invoice_id": "I3", "customer_id": "C1", "invoiceNumber": "INV-3", "currency": "EUR"},
                ],
            ),
            SheetData.from_records(
                "Items",
                [
                    {"invoice_id": "I1", "description": "Widget", "price": 5},
                    {"invoice_id": "I2", "description": "Gadget", "price": 6},
                    {"invoice_id": "I3", "description": "Gizmo", "price": 7},
                ],
            ),
        )

        result = transform_to_invoices(workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS)

        assert [i.invoice_number for i in result.invoices] == ["INV-1", "INV-3"]
        assert result.warnings == ["Failed to process row 3: unreadable currency"]
        assert result.invoices[1].currency == "EUR"

    def test_no_invoice_sheet_falls_back_to_first(self):
        workbook = Workbook.from_sheets(
            SheetData.from_records("Customers", [{"customer_id": "C1", "name": "Acme"}]),
            SheetData.from_records("Items", [{"invoice_id": "I1", "description": "Widget"}]),
        )

        result = transform_to_invoices(
            workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=["Customers", "Items"]
        )

        assert result.warnings[0] == "No invoice sheet detected. Using first sheet as invoice data."
        assert result.sheet_roles.invoices == "Customers"

    def test_single_selected_sheet_uses_flat_path(self, relational_workbook):
        result = transform_to_invoices(
            relational_workbook, [], ExcelFormat.MULTI_SHEET, selected_sheets=["Items"]
        )

        assert result.relationships == []
        assert [i.invoice_number for i in result.invoices] == ["AUTO-1"]

    def test_sheet_tagged_mappings_override_detection(self, relational_workbook):
        mappings = [
            ColumnMapping("cust_id", "customerId", 100, sheet_name="Customers"),
            ColumnMapping("name", "customerName", 100, sheet_name="Customers"),
            ColumnMapping("invoice_id", "invoiceId", 100, sheet_name="Invoices"),
            ColumnMapping("customer_id", "customerId", 100, sheet_name="Invoices"),
            ColumnMapping("invoice_id", "poNumber", 100, sheet_name="Invoices"),
        ]

        result = transform_to_invoices(
            relational_workbook, mappings, ExcelFormat.MULTI_SHEET, selected_sheets=self.SHEETS
        )

        [invoice] = result.invoices
        # invoiceNumber is not mapped on the invoices sheet
        assert invoice.invoice_number == "AUTO-1"
        assert invoice.po_number == "I1"
        assert invoice.line_items[0].description == "Widget"


def test_create_field_map_skips_unmapped():
    mappings = [ColumnMapping("A", "invoiceNumber"), ColumnMapping("B", None)]
    assert create_field_map(mappings) == {"invoiceNumber": "A"}


def test_group_by_invoice_number_preserves_first_seen_order():
    rows = [{"n": "B"}, {"n": "A"}, {"n": "B"}]

    groups = group_by_invoice_number(rows, {"invoiceNumber": "n"})

    assert list(groups) == ["B", "A"]
    assert [n for _, n in groups["B"]] == [2, 4]
