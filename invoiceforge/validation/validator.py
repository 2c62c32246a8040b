"""Invoice validation: classify each invoice as valid, warning or error.

Errors (missing invoice number / customer name / line items, negative
quantity or price) exclude an invoice from generation. Warnings (duplicate
number, missing description, malformed email, future issue date) do not.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime

from invoiceforge.models import (
    PLACEHOLDER_DESCRIPTION,
    UNKNOWN_CUSTOMER,
    Invoice,
    InvoiceStatus,
    InvoiceValidationResult,
    IssueDetails,
    ValidationCode,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
    get_error_message,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_SUGGESTIONS: dict[ValidationCode, str] = {
    ValidationCode.MISSING_INVOICE_NUMBER: "Fill in the invoice number column",
    ValidationCode.MISSING_CUSTOMER_NAME: "Map a customer name column or fill in the name",
    ValidationCode.MISSING_LINE_ITEMS: "Add at least one item row for this invoice",
    ValidationCode.NEGATIVE_QUANTITY: "Use a quantity of zero or more",
    ValidationCode.NEGATIVE_PRICE: "Use a unit price of zero or more",
}


def _issue(
    severity: ValidationSeverity,
    code: ValidationCode,
    row_number: int | None,
    column_name: str | None = None,
    value: str | None = None,
) -> ValidationIssue:
    row = row_number if row_number is not None else "unknown"
    return ValidationIssue(
        severity=severity,
        code=code,
        message=f"Row {row}: {get_error_message(code, value)}",
        details=IssueDetails(
            row_number=row_number,
            column_name=column_name,
            value=value,
            suggestion=_SUGGESTIONS.get(code),
        ),
    )


def validate_invoice(
    invoice: Invoice,
    seen_numbers: set[str],
    now: datetime | None = None,
) -> InvoiceValidationResult:
    """Check one invoice; ``seen_numbers`` holds numbers of earlier invoices."""
    now = now or datetime.now()
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    row_number = invoice.row_numbers[0] if invoice.row_numbers else None

    def error(code, row=row_number, column=None, value=None):
        errors.append(_issue(ValidationSeverity.ERROR, code, row, column, value))

    def warning(code, row=row_number, column=None, value=None):
        warnings.append(_issue(ValidationSeverity.WARNING, code, row, column, value))

    if not invoice.invoice_number or not invoice.invoice_number.strip():
        error(ValidationCode.MISSING_INVOICE_NUMBER)

    name = invoice.customer.name
    if not name or not name.strip() or name == UNKNOWN_CUSTOMER:
        error(ValidationCode.MISSING_CUSTOMER_NAME, column="customerName")

    if not invoice.line_items:
        error(ValidationCode.MISSING_LINE_ITEMS)

    if invoice.invoice_number in seen_numbers:
        warning(
            ValidationCode.DUPLICATE_INVOICE_NUMBER,
            column="invoiceNumber",
            value=invoice.invoice_number,
        )

    for index, item in enumerate(invoice.line_items):
        item_row = invoice.row_numbers[index] if index < len(invoice.row_numbers) else row_number

        if not item.description or not item.description.strip() or item.description == PLACEHOLDER_DESCRIPTION:
            warning(ValidationCode.MISSING_DESCRIPTION, row=item_row, column="description")
        if item.quantity < 0:
            error(ValidationCode.NEGATIVE_QUANTITY, row=item_row, column="quantity", value=str(item.quantity))
        if item.unit_price < 0:
            error(ValidationCode.NEGATIVE_PRICE, row=item_row, column="unitPrice", value=str(item.unit_price))

    email = invoice.customer.email
    if email and not EMAIL_PATTERN.match(email):
        warning(ValidationCode.INVALID_EMAIL_FORMAT, column="customerEmail", value=email)

    if invoice.issue_date > now:
        warning(ValidationCode.FUTURE_DATE, column="issueDate")

    return InvoiceValidationResult(
        invoice_number=invoice.invoice_number,
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
    )


def validate_invoices(
    invoices: Sequence[Invoice],
    now: datetime | None = None,
) -> ValidationResult:
    """Validate invoices in order and write ``status``/``validation_errors`` back.

    Duplicate detection depends on order: only the second and later
    occurrences of a number are flagged.

    Args:
        invoices: Transformed invoices (mutated in place)
        now: Reference time for the future-date check (defaults to now)

    Returns:
        Aggregate ValidationResult with per-invoice results
    """
    now = now or datetime.now()
    result = ValidationResult(total_rows=len(invoices))
    seen_numbers: set[str] = set()

    for invoice in invoices:
        invoice_result = validate_invoice(invoice, seen_numbers, now)
        result.invoice_results.append(invoice_result)

        if invoice_result.errors:
            invoice.status = InvoiceStatus.ERROR
            invoice.validation_errors = [e.message for e in invoice_result.errors]
            result.error_rows += 1
        elif invoice_result.warnings:
            invoice.status = InvoiceStatus.WARNING
            invoice.validation_errors = [w.message for w in invoice_result.warnings]
            result.warning_rows += 1
        else:
            invoice.status = InvoiceStatus.VALID
            invoice.validation_errors = None
            result.valid_rows += 1

        result.errors.extend(invoice_result.errors)
        result.warnings.extend(invoice_result.warnings)
        seen_numbers.add(invoice.invoice_number)

    result.is_valid = result.error_rows == 0
    logger.info(
        f"Validated {result.total_rows} invoice(s): {result.valid_rows} valid, "
        f"{result.warning_rows} warning, {result.error_rows} error"
    )
    return result
