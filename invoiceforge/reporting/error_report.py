"""Error report CSV for invoices that failed validation."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Iterator
from io import StringIO
from pathlib import Path

from invoiceforge.models import Invoice, InvoiceStatus, ValidationResult

HEADERS = ["Row", "Invoice Number", "Field", "Issue", "Value", "Suggestion"]


def error_report_rows(
    invoices: Iterable[Invoice],
    validation: ValidationResult | None = None,
) -> Iterator[list[str]]:
    """Yield one CSV row per validation error of each error invoice.

    With a ``ValidationResult`` the Field/Value/Suggestion columns come from
    the issue details; otherwise only the messages on the invoices are used.
    """
    details_by_message = {}
    if validation is not None:
        for issue in validation.errors:
            details_by_message.setdefault(issue.message, issue.details)

    for invoice in invoices:
        if invoice.status != InvoiceStatus.ERROR:
            continue
        row = str(invoice.row_numbers[0]) if invoice.row_numbers else ""
        for message in invoice.validation_errors or []:
            details = details_by_message.get(message)
            yield [
                row,
                invoice.invoice_number,
                (details.column_name or "") if details else "",
                message,
                (details.value or "") if details else "",
                (details.suggestion or "") if details else "",
            ]


def render_error_report(
    invoices: Iterable[Invoice], validation: ValidationResult | None = None
) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(HEADERS)
    writer.writerows(error_report_rows(invoices, validation))
    return output.getvalue()


def write_error_report(
    path: Path | str,
    invoices: Iterable[Invoice],
    validation: ValidationResult | None = None,
) -> int:
    """Write the error report to ``path``.

    Returns:
        Number of error rows written (header excluded)
    """
    rows = list(error_report_rows(invoices, validation))
    with Path(path).open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(HEADERS)
        writer.writerows(rows)
    return len(rows)
