"""Payment-state inference and generation routing for validated invoices."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from invoiceforge.models import Invoice, InvoiceStatus, PaymentStatus

_PAID = {"paid", "complete", "completed"}
_STATUS_TEXT: dict[str, PaymentStatus] = {
    "unpaid": PaymentStatus.UNPAID,
    "pending": PaymentStatus.PENDING,
    "draft": PaymentStatus.PENDING,
    "sent": PaymentStatus.PENDING,
    "overdue": PaymentStatus.OVERDUE,
    "partial": PaymentStatus.PARTIAL,
    "partially paid": PaymentStatus.PARTIAL,
}


def resolve_payment_status(invoice: Invoice, today: date | None = None) -> PaymentStatus:
    """Infer payment status from an invoice's own fields.

    Cascade, first decisive rule wins:
    1. Source status text (``paid``/``complete``/``completed`` is paid,
       ``unpaid``/``pending``/``overdue``/``draft``/``partial`` as named)
    2. ``amount_paid`` against ``grand_total`` (full is paid, less is partial)
    3. ``balance_due`` of zero or less is paid
    4. A due date before ``today`` is overdue
    5. Otherwise unpaid
    """
    today = today or date.today()
    status_text = (invoice.source_status or "").strip().lower()

    if status_text in _PAID:
        return PaymentStatus.PAID
    if status_text in _STATUS_TEXT:
        return _STATUS_TEXT[status_text]

    if invoice.amount_paid and invoice.grand_total:
        if invoice.amount_paid >= invoice.grand_total:
            return PaymentStatus.PAID
        if invoice.amount_paid > 0:
            return PaymentStatus.PARTIAL

    if invoice.balance_due is not None and invoice.balance_due <= 0:
        return PaymentStatus.PAID

    due = invoice.due_date
    if due is not None:
        due_day = due.date() if isinstance(due, datetime) else due
        if due_day < today:
            return PaymentStatus.OVERDUE

    return PaymentStatus.UNPAID


def is_invoice_paid(invoice: Invoice, today: date | None = None) -> bool:
    status = invoice.payment_status or resolve_payment_status(invoice, today)
    return status == PaymentStatus.PAID


def generatable(invoices: Iterable[Invoice]) -> list[Invoice]:
    """Invoices eligible for document generation (anything but error)."""
    return [inv for inv in invoices if inv.status != InvoiceStatus.ERROR]


def split_by_payment(
    invoices: Iterable[Invoice], today: date | None = None
) -> dict[str, list[Invoice]]:
    """Route generatable invoices into ``paid`` and ``unpaid`` buckets."""
    buckets: dict[str, list[Invoice]] = {"paid": [], "unpaid": []}
    for invoice in generatable(invoices):
        key = "paid" if is_invoice_paid(invoice, today) else "unpaid"
        buckets[key].append(invoice)
    return buckets
