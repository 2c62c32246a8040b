"""Tests for workbook shape detection, sheet roles and relationships."""

from __future__ import annotations

from invoiceforge.ingestion.workbook import SheetData
from invoiceforge.mapping.format_detector import detect_excel_format, identify_sheet_roles
from invoiceforge.mapping.models import ColumnMapping, ExcelFormat, SheetRelationship, SheetRole
from invoiceforge.mapping.relationships import detect_sheet_relationships

NUMBER_MAPPING = [ColumnMapping("Invoice Number", "invoiceNumber", 100)]


def _rows(*numbers):
    return [{"Invoice Number": n} for n in numbers]


class TestDetectExcelFormat:
    def test_customer_sheet_means_multi_sheet(self):
        fmt = detect_excel_format(["Customers", "Invoices"], NUMBER_MAPPING, _rows("A"))
        assert fmt == ExcelFormat.MULTI_SHEET

    def test_invoice_and_item_sheets_mean_multi_sheet(self):
        fmt = detect_excel_format(["Invoices", "Line Items"], NUMBER_MAPPING, _rows("A"))
        assert fmt == ExcelFormat.MULTI_SHEET

    def test_unrelated_sheet_names_fall_through(self):
        fmt = detect_excel_format(["Sheet1", "Sheet2"], NUMBER_MAPPING, _rows("A", "B"))
        assert fmt == ExcelFormat.FLAT_SINGLE_ROW

    def test_repeated_invoice_numbers_mean_multi_row(self):
        fmt = detect_excel_format(["Sheet1"], NUMBER_MAPPING, _rows("A", "A", "B"))
        assert fmt == ExcelFormat.FLAT_MULTI_ROW

    def test_distinct_invoice_numbers_mean_single_row(self):
        fmt = detect_excel_format(["Sheet1"], NUMBER_MAPPING, _rows("A", "B", "C"))
        assert fmt == ExcelFormat.FLAT_SINGLE_ROW

    def test_single_sample_row_is_single_row(self):
        fmt = detect_excel_format(["Sheet1"], NUMBER_MAPPING, _rows("A"))
        assert fmt == ExcelFormat.FLAT_SINGLE_ROW

    def test_without_invoice_number_mapping(self):
        fmt = detect_excel_format(["Sheet1"], [], _rows("A", "A", "A"))
        assert fmt == ExcelFormat.FLAT_SINGLE_ROW


class TestIdentifySheetRoles:
    def test_standard_names(self):
        roles = identify_sheet_roles(["Customers", "Invoices", "Items"])

        assert roles.get(SheetRole.CUSTOMERS) == "Customers"
        assert roles.get(SheetRole.INVOICES) == "Invoices"
        assert roles.get(SheetRole.ITEMS) == "Items"

    def test_item_tokens_checked_before_invoice_tokens(self):
        roles = identify_sheet_roles(["Invoice Header", "Invoice Details"])

        assert roles.invoices == "Invoice Header"
        assert roles.items == "Invoice Details"

    def test_order_sheets(self):
        roles = identify_sheet_roles(["Orders", "Order Lines"])

        assert roles.invoices == "Orders"
        assert roles.items == "Order Lines"

    def test_fallback_invoice_sheet(self):
        roles = identify_sheet_roles(["Clients", "Data"])

        assert roles.customers == "Clients"
        assert roles.invoices == "Data"
        assert roles.items is None


class TestDetectSheetRelationships:
    def test_items_reference_invoices(self, relational_workbook):
        relationships = detect_sheet_relationships(relational_workbook.sheets)

        assert relationships == [
            SheetRelationship("Items", "invoice_id", "Invoices", "invoice_id", 100)
        ]

    def test_foreign_key_to_plain_id_column(self):
        sheets = {
            "Customers": SheetData.from_records(
                "Customers", [{"id": "C1", "name": "Acme"}, {"id": "C2", "name": "Globex"}]
            ),
            "Orders": SheetData.from_records(
                "Orders",
                [
                    {"order_id": "O1", "customer_id": "C1"},
                    {"order_id": "O2", "customer_id": "C9"},
                ],
            ),
        }

        relationships = detect_sheet_relationships(sheets)

        assert len(relationships) == 1
        rel = relationships[0]
        assert (rel.from_sheet, rel.from_column, rel.to_sheet, rel.to_column) == (
            "Orders",
            "customer_id",
            "Customers",
            "id",
        )
        assert rel.confidence == 50

    def test_low_overlap_dropped(self):
        sheets = {
            "Customers": SheetData.from_records("Customers", [{"customer_id": "C1"}]),
            "Invoices": SheetData.from_records(
                "Invoices", [{"customer_id": "X1"}, {"customer_id": "X2"}]
            ),
        }
        assert detect_sheet_relationships(sheets) == []

    def test_sorted_by_confidence(self):
        sheets = {
            "Customers": SheetData.from_records(
                "Customers", [{"customer_id": "C1"}, {"customer_id": "C2"}]
            ),
            "Invoices": SheetData.from_records(
                "Invoices",
                [
                    {"invoice_id": "I1", "customer_id": "C1"},
                    {"invoice_id": "I2", "customer_id": "C3"},
                ],
            ),
            "Items": SheetData.from_records(
                "Items", [{"invoice_id": "I1"}, {"invoice_id": "I2"}]
            ),
        }

        relationships = detect_sheet_relationships(sheets)

        assert [r.confidence for r in relationships] == sorted(
            (r.confidence for r in relationships), reverse=True
        )
        assert relationships[0].from_sheet == "Items"
