"""Workbook shape detection and sheet-role assignment.

Both heuristics work on sheet names and a small row sample; they are advisory
and callers may override them with an explicit sheet mode or role selection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from invoiceforge.canonical.normalize import cell_text
from invoiceforge.config import MappingConfig, get_config
from invoiceforge.mapping.models import ColumnMapping, ExcelFormat, SheetRoles

logger = logging.getLogger(__name__)

CUSTOMER_TOKENS = ("customer", "client", "contact")
INVOICE_TOKENS = ("invoice", "bill", "header")
ITEM_TOKENS = ("item", "line", "detail")
# Role assignment also accepts "order" sheets as invoice headers
INVOICE_ROLE_TOKENS = INVOICE_TOKENS + ("order",)


def _has_token(name: str, tokens: Sequence[str]) -> bool:
    lower = name.lower()
    return any(token in lower for token in tokens)


def detect_excel_format(
    sheet_names: Sequence[str],
    mappings: Sequence[ColumnMapping],
    sample_rows: Sequence[Mapping[str, Any]],
    config: MappingConfig | None = None,
) -> ExcelFormat:
    """Classify a workbook as single-row, multi-row or multi-sheet.

    Rules, first match wins:
    1. Two or more sheets and either a customer-like sheet name, or both an
       invoice-like and an item-like sheet name: ``MULTI_SHEET``.
    2. A mapped invoice-number column whose distinct sample values are fewer
       than ``multi_row_unique_ratio`` of the sample rows: ``FLAT_MULTI_ROW``.
    3. Otherwise ``FLAT_SINGLE_ROW``.

    Args:
        sheet_names: All sheet names in the workbook
        mappings: Column mappings of the primary sheet
        sample_rows: Leading rows of the primary sheet

    Returns:
        Detected format
    """
    config = config or get_config().mapping

    if len(sheet_names) >= 2:
        has_customers = any(_has_token(s, CUSTOMER_TOKENS) for s in sheet_names)
        has_invoices = any(_has_token(s, INVOICE_TOKENS) for s in sheet_names)
        has_items = any(_has_token(s, ITEM_TOKENS) for s in sheet_names)
        if has_customers or (has_invoices and has_items):
            return ExcelFormat.MULTI_SHEET

    number_column = next(
        (m.source_column for m in mappings if m.target_field == "invoiceNumber"), None
    )
    if number_column is not None and len(sample_rows) >= 2:
        values = [row.get(number_column) for row in sample_rows]
        unique = {cell_text(v) for v in values if v is not None}
        if len(unique) < len(values) * config.multi_row_unique_ratio:
            return ExcelFormat.FLAT_MULTI_ROW

    return ExcelFormat.FLAT_SINGLE_ROW


def identify_sheet_roles(sheet_names: Sequence[str]) -> SheetRoles:
    """Assign customers / items / invoices roles from sheet-name tokens.

    Each sheet takes at most one role, checked in the order customers, items,
    invoices; the first sheet matching a role keeps it. Without an invoice-like
    name, the first sheet that is neither customers nor items becomes the
    invoice sheet.
    """
    roles = SheetRoles()

    for sheet in sheet_names:
        if roles.customers is None and _has_token(sheet, CUSTOMER_TOKENS):
            roles.customers = sheet
        elif roles.items is None and _has_token(sheet, ITEM_TOKENS):
            roles.items = sheet
        elif roles.invoices is None and _has_token(sheet, INVOICE_ROLE_TOKENS):
            roles.invoices = sheet

    if roles.invoices is None:
        for sheet in sheet_names:
            if sheet not in (roles.customers, roles.items):
                roles.invoices = sheet
                break

    logger.debug(
        f"Sheet roles: customers={roles.customers} invoices={roles.invoices} "
        f"items={roles.items}"
    )
    return roles
