"""Data transformer: mapped spreadsheet rows into canonical invoices.

Single-sheet workbooks are grouped by invoice number (one group = one invoice,
one row = one line item). Relational workbooks join a customers sheet and an
items sheet onto the invoice sheet by id.

A failing group or row never aborts the batch: it becomes a warning and is
left out of the result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from invoiceforge.canonical.normalize import cell_text, normalize_key
from invoiceforge.config import TransformConfig, get_config
from invoiceforge.ingestion.workbook import Row, SheetData, Workbook
from invoiceforge.mapping.column_mapper import ColumnMapper
from invoiceforge.mapping.format_detector import identify_sheet_roles
from invoiceforge.mapping.models import ColumnMapping, ExcelFormat, SheetRelationship, SheetRoles
from invoiceforge.mapping.relationships import detect_sheet_relationships
from invoiceforge.models import (
    PLACEHOLDER_DESCRIPTION,
    UNKNOWN_CUSTOMER,
    Address,
    Customer,
    Discount,
    DiscountType,
    Invoice,
    InvoiceLineItem,
)
from invoiceforge.transform.values import (
    generate_id,
    get_field_value,
    normalize_currency,
    parse_date,
    parse_number,
)

logger = logging.getLogger(__name__)

FieldMap = dict[str, str]  # canonical field -> source column

ZERO = Decimal("0")


@dataclass
class GroupOutcome:
    """Result of converting one row group: an invoice, or the reason it failed."""

    invoice: Invoice | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.invoice is not None

    @classmethod
    def success(cls, invoice: Invoice, warnings: Iterable[str] = ()) -> GroupOutcome:
        return cls(invoice=invoice, warnings=list(warnings))

    @classmethod
    def failure(cls, warning: str) -> GroupOutcome:
        return cls(invoice=None, warnings=[warning])


@dataclass
class TransformResult:
    invoices: list[Invoice] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    relationships: list[SheetRelationship] = field(default_factory=list)
    sheet_roles: SheetRoles | None = None

    def add(self, outcome: GroupOutcome) -> None:
        if outcome.invoice is not None:
            self.invoices.append(outcome.invoice)
        self.warnings.extend(outcome.warnings)


def create_field_map(mappings: Iterable[ColumnMapping]) -> FieldMap:
    """Canonical field to source column; a later mapping for a field wins."""
    return {m.target_field: m.source_column for m in mappings if m.target_field}


def is_empty_row(row: Mapping[str, Any]) -> bool:
    return all(cell_text(v) == "" for v in row.values())


@dataclass
class _Totals:
    subtotal: Decimal
    total_tax: Decimal
    total_discount: Decimal
    grand_total: Decimal
    computed_grand_total: Decimal
    explicit_total: Decimal | None


class DataTransformer:
    """Builds ``Invoice`` objects from a workbook and column mappings."""

    def __init__(
        self,
        config: TransformConfig | None = None,
        mapper: ColumnMapper | None = None,
    ):
        self.config = config or get_config().transform
        self.mapper = mapper

    def transform(
        self,
        workbook: Workbook,
        mappings: Sequence[ColumnMapping],
        excel_format: ExcelFormat,
        selected_sheets: Sequence[str] | None = None,
        sheet_roles: SheetRoles | None = None,
    ) -> TransformResult:
        """Transform workbook rows into invoices.

        Args:
            workbook: Decoded spreadsheet
            mappings: Confirmed or detected column mappings
            excel_format: Workbook shape; the relational path needs at least
                two selected sheets
            selected_sheets: Sheets to use (first sheet when omitted)
            sheet_roles: Explicit sheet roles for relational mode

        Returns:
            TransformResult with invoices in source order plus warnings

        Raises:
            SheetNotFoundError: If a selected sheet does not exist
        """
        if excel_format == ExcelFormat.MULTI_SHEET and selected_sheets and len(selected_sheets) >= 2:
            result = self._transform_multi_sheet(workbook, selected_sheets, mappings, sheet_roles)
        elif not workbook.sheets:
            result = TransformResult()
        else:
            sheet = workbook.sheet(selected_sheets[0] if selected_sheets else None)
            result = self._transform_single_sheet(sheet, mappings)

        logger.info(
            f"Transformed {len(result.invoices)} invoice(s) "
            f"with {len(result.warnings)} warning(s)"
        )
        return result

    # ------------------------------------------------------------------
    # Single sheet
    # ------------------------------------------------------------------

    def _transform_single_sheet(
        self, sheet: SheetData, mappings: Sequence[ColumnMapping]
    ) -> TransformResult:
        field_map = create_field_map(mappings)
        result = TransformResult()

        for invoice_number, group in group_by_invoice_number(sheet.rows, field_map).items():
            result.add(self._group_to_invoice(invoice_number, group, field_map))

        return result

    def _group_to_invoice(
        self,
        invoice_number: str,
        group: list[tuple[Row, int]],
        field_map: FieldMap,
    ) -> GroupOutcome:
        try:
            first_row = group[0][0]
            line_items = [self.extract_line_item(row, field_map) for row, _ in group]
            return self._build_invoice(
                invoice_number,
                first_row,
                field_map,
                customer=self.extract_customer(first_row, field_map),
                line_items=line_items,
                row_numbers=[n for _, n in group],
            )
        except Exception as e:
            logger.warning(f"Failed to process invoice {invoice_number}: {e}")
            return GroupOutcome.failure(f"Failed to process invoice {invoice_number}: {e}")

    # ------------------------------------------------------------------
    # Multi sheet
    # ------------------------------------------------------------------

    def _transform_multi_sheet(
        self,
        workbook: Workbook,
        sheet_names: Sequence[str],
        user_mappings: Sequence[ColumnMapping],
        sheet_roles: SheetRoles | None,
    ) -> TransformResult:
        sheets = {s.name: s for s in workbook.select(sheet_names)}
        result = TransformResult()
        result.relationships = detect_sheet_relationships(sheets)

        roles = sheet_roles or identify_sheet_roles(list(sheets))
        if roles.invoices is None:
            result.warnings.append("No invoice sheet detected. Using first sheet as invoice data.")
            roles.invoices = next(iter(sheets))
        result.sheet_roles = roles

        field_maps = self._sheet_field_maps(sheets, user_mappings)

        customers = self._customer_lookup(sheets.get(roles.customers), field_maps)
        items = self._items_lookup(sheets.get(roles.items), field_maps)

        invoice_sheet = sheets.get(roles.invoices)
        if invoice_sheet is None:
            return result
        invoice_map = field_maps[invoice_sheet.name]

        for index, row in enumerate(invoice_sheet.rows):
            if is_empty_row(row):
                continue
            result.add(self._relational_row_to_invoice(index, row, invoice_map, customers, items))

        return result

    def _sheet_field_maps(
        self, sheets: Mapping[str, SheetData], user_mappings: Sequence[ColumnMapping]
    ) -> dict[str, FieldMap]:
        by_sheet: dict[str, list[ColumnMapping]] = {}
        for mapping in user_mappings:
            if mapping.sheet_name:
                by_sheet.setdefault(mapping.sheet_name, []).append(mapping)

        field_maps = {}
        for name, sheet in sheets.items():
            sheet_mappings = by_sheet.get(name)
            if not sheet_mappings:
                if self.mapper is None:
                    self.mapper = ColumnMapper()
                sheet_mappings = self.mapper.detect(sheet.headers, sheet.rows, sheet_name=name)
            field_maps[name] = create_field_map(sheet_mappings)
        return field_maps

    def _customer_lookup(
        self, sheet: SheetData | None, field_maps: Mapping[str, FieldMap]
    ) -> dict[str, Customer]:
        lookup: dict[str, Customer] = {}
        if sheet is None:
            return lookup

        field_map = field_maps[sheet.name]
        for row in sheet.rows:
            if is_empty_row(row):
                continue
            customer_id = get_field_value(row, field_map, "customerId") or generate_id()
            customer = self.extract_customer(row, field_map)
            customer.id = customer_id
            lookup[normalize_key(customer_id)] = customer
            lookup[customer_id.strip()] = customer
        return lookup

    def _items_lookup(
        self, sheet: SheetData | None, field_maps: Mapping[str, FieldMap]
    ) -> dict[str, list[InvoiceLineItem]]:
        lookup: dict[str, list[InvoiceLineItem]] = {}
        if sheet is None:
            return lookup

        field_map = field_maps[sheet.name]
        for row in sheet.rows:
            if is_empty_row(row):
                continue
            invoice_id = get_field_value(row, field_map, "invoiceId") or get_field_value(
                row, field_map, "invoiceNumber"
            )
            if not invoice_id:
                continue
            bucket = lookup.setdefault(normalize_key(invoice_id), [])
            lookup.setdefault(invoice_id.strip(), bucket)
            bucket.append(self.extract_line_item(row, field_map))
        return lookup

    def _relational_row_to_invoice(
        self,
        index: int,
        row: Row,
        field_map: FieldMap,
        customers: Mapping[str, Customer],
        items: Mapping[str, list[InvoiceLineItem]],
    ) -> GroupOutcome:
        row_number = index + 2
        try:
            warnings: list[str] = []
            invoice_number = get_field_value(row, field_map, "invoiceNumber") or f"AUTO-{index + 1}"
            invoice_id = get_field_value(row, field_map, "invoiceId") or invoice_number

            customer_id = get_field_value(row, field_map, "customerId")
            customer = None
            if customer_id:
                customer = customers.get(normalize_key(customer_id)) or customers.get(
                    customer_id.strip()
                )
            if customer is None:
                customer = self.extract_customer(row, field_map)
                if customer.name == UNKNOWN_CUSTOMER and customer_id and customers:
                    warnings.append(
                        f'Invoice {invoice_number}: Customer ID "{customer_id}" '
                        "not found in customers sheet."
                    )
            else:
                customer = customer.model_copy(deep=True)

            line_items = items.get(normalize_key(invoice_id)) or items.get(
                normalize_key(invoice_number)
            )
            if line_items:
                line_items = [item.model_copy(deep=True) for item in line_items]
            elif get_field_value(row, field_map, "description"):
                line_items = [self.extract_line_item(row, field_map)]
            else:
                line_items = [
                    InvoiceLineItem(
                        description=PLACEHOLDER_DESCRIPTION,
                        quantity=Decimal("1"),
                        unit_price=ZERO,
                        line_total=ZERO,
                    )
                ]
                warnings.append(f"Invoice {invoice_number} has no line items.")

            outcome = self._build_invoice(
                invoice_number,
                row,
                field_map,
                customer=customer,
                line_items=line_items,
                row_numbers=[row_number],
            )
            outcome.warnings[:0] = warnings
            return outcome
        except Exception as e:
            logger.warning(f"Failed to process row {row_number}: {e}")
            return GroupOutcome.failure(f"Failed to process row {row_number}: {e}")

    # ------------------------------------------------------------------
    # Shared extraction
    # ------------------------------------------------------------------

    def _build_invoice(
        self,
        invoice_number: str,
        row: Row,
        field_map: FieldMap,
        customer: Customer,
        line_items: list[InvoiceLineItem],
        row_numbers: list[int],
    ) -> GroupOutcome:
        warnings: list[str] = []
        totals = self._totals(row, field_map, line_items)

        if (
            self.config.warn_on_total_mismatch
            and totals.explicit_total is not None
            and totals.explicit_total != totals.computed_grand_total
        ):
            warnings.append(
                f"Invoice {invoice_number}: explicit total {totals.explicit_total} "
                f"differs from computed total {totals.computed_grand_total}"
            )

        issue_date = parse_date(get_field_value(row, field_map, "issueDate")) or datetime.now()
        due_text = get_field_value(row, field_map, "dueDate")
        due_date = parse_date(due_text) if due_text else None

        amount_paid = parse_number(get_field_value(row, field_map, "amountPaid")) or None
        balance_due = totals.grand_total - amount_paid if amount_paid is not None else None

        invoice = Invoice(
            invoice_number=invoice_number,
            customer=customer,
            issue_date=issue_date,
            due_date=due_date,
            line_items=line_items,
            currency=normalize_currency(
                get_field_value(row, field_map, "currency"), self.config.default_currency
            ),
            subtotal=totals.subtotal,
            total_tax=totals.total_tax,
            total_discount=totals.total_discount,
            grand_total=totals.grand_total,
            amount_paid=amount_paid,
            balance_due=balance_due,
            notes=get_field_value(row, field_map, "notes") or None,
            terms=get_field_value(row, field_map, "terms") or None,
            po_number=get_field_value(row, field_map, "poNumber") or None,
            source_status=get_field_value(row, field_map, "status") or None,
            row_numbers=row_numbers,
        )
        return GroupOutcome.success(invoice, warnings)

    def _totals(
        self, row: Row, field_map: FieldMap, line_items: Sequence[InvoiceLineItem]
    ) -> _Totals:
        subtotal = sum((item.line_total for item in line_items), ZERO)
        total_tax = sum((item.tax_amount or ZERO for item in line_items), ZERO)
        total_discount = calculate_total_discount(line_items)

        explicit_subtotal = parse_number(get_field_value(row, field_map, "invoiceSubtotal"))
        explicit_tax = parse_number(get_field_value(row, field_map, "invoiceTax"))
        explicit_total = parse_number(get_field_value(row, field_map, "invoiceTotal"))

        if explicit_subtotal is not None and explicit_subtotal > 0:
            subtotal = explicit_subtotal
        if explicit_tax is not None and explicit_tax > 0:
            total_tax = explicit_tax

        computed = subtotal - total_discount + total_tax
        has_explicit_total = explicit_total is not None and explicit_total > 0
        return _Totals(
            subtotal=subtotal,
            total_tax=total_tax,
            total_discount=total_discount,
            grand_total=explicit_total if has_explicit_total else computed,
            computed_grand_total=computed,
            explicit_total=explicit_total if has_explicit_total else None,
        )

    def extract_customer(self, row: Row, field_map: FieldMap) -> Customer:
        """Customer identity and address from one row."""
        line1 = get_field_value(row, field_map, "customerAddress")
        city = get_field_value(row, field_map, "customerCity")
        state = get_field_value(row, field_map, "customerState")
        postal_code = get_field_value(row, field_map, "customerPostalCode")
        country = get_field_value(row, field_map, "customerCountry")

        address = None
        if line1 or city or state or postal_code or country:
            address = Address(
                line1=line1 or None,
                city=city or None,
                state=state or None,
                postal_code=postal_code or None,
                country=country or None,
            )

        return Customer(
            id=get_field_value(row, field_map, "customerId") or generate_id(),
            name=get_field_value(row, field_map, "customerName") or UNKNOWN_CUSTOMER,
            email=get_field_value(row, field_map, "customerEmail") or None,
            phone=get_field_value(row, field_map, "customerPhone") or None,
            address=address,
            tax_id=get_field_value(row, field_map, "customerTaxId") or None,
        )

    def extract_line_item(self, row: Row, field_map: FieldMap) -> InvoiceLineItem:
        """One line item from one row.

        Quantity defaults to 1 (a zero cell reads as 1), unit price to 0. An
        explicit nonzero line total wins over quantity x price. Discounts above
        ``fixed_discount_threshold`` are fixed amounts, otherwise percentages.
        """

        def number(name: str) -> Decimal:
            return parse_number(get_field_value(row, field_map, name)) or ZERO

        quantity = number("quantity") or Decimal("1")
        unit_price = number("unitPrice")
        tax_rate = number("taxRate")
        discount_value = number("discount")

        line_total = number("lineTotal")
        if line_total == 0:
            line_total = quantity * unit_price

        explicit_tax = number("taxAmount")
        if explicit_tax > 0:
            tax_amount = explicit_tax
        elif tax_rate > 0:
            tax_amount = line_total * tax_rate / 100
        else:
            tax_amount = ZERO

        discount = None
        if discount_value > 0:
            discount = Discount(
                type=(
                    DiscountType.FIXED
                    if discount_value > self.config.fixed_discount_threshold
                    else DiscountType.PERCENTAGE
                ),
                value=discount_value,
            )

        return InvoiceLineItem(
            description=get_field_value(row, field_map, "description") or PLACEHOLDER_DESCRIPTION,
            quantity=quantity,
            unit_price=unit_price,
            discount=discount,
            tax_rate=tax_rate if tax_rate > 0 else None,
            tax_amount=tax_amount if tax_amount > 0 else None,
            line_total=line_total,
            sku=get_field_value(row, field_map, "sku") or None,
        )


def group_by_invoice_number(
    rows: Sequence[Row], field_map: FieldMap
) -> dict[str, list[tuple[Row, int]]]:
    """Group non-empty rows by invoice number, keeping first-seen order.

    Rows without an invoice number get their own ``AUTO-{n}`` group. Row
    numbers are spreadsheet rows (data index + 2 for the header).
    """
    groups: dict[str, list[tuple[Row, int]]] = {}
    for index, row in enumerate(rows):
        if is_empty_row(row):
            continue
        invoice_number = get_field_value(row, field_map, "invoiceNumber") or f"AUTO-{index + 1}"
        groups.setdefault(invoice_number, []).append((row, index + 2))
    return groups


def calculate_total_discount(line_items: Iterable[InvoiceLineItem]) -> Decimal:
    """Fixed discounts add as-is; percentages apply to quantity x unit price."""
    total = ZERO
    for item in line_items:
        if item.discount is None:
            continue
        if item.discount.type == DiscountType.FIXED:
            total += item.discount.value
        else:
            total += item.unit_price * item.quantity * item.discount.value / 100
    return total


def transform_to_invoices(
    workbook: Workbook,
    mappings: Sequence[ColumnMapping],
    excel_format: ExcelFormat,
    selected_sheets: Sequence[str] | None = None,
    sheet_roles: SheetRoles | None = None,
    config: TransformConfig | None = None,
) -> TransformResult:
    """Module-level entry point; see ``DataTransformer.transform``."""
    return DataTransformer(config).transform(
        workbook, mappings, excel_format, selected_sheets, sheet_roles
    )
