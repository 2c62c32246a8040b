"""InvoiceForge Pydantic models for type-safe invoice data.

Attributes are snake_case; the camelCase aliases are the shape handed to the
rendering layer (``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNKNOWN_CUSTOMER = "Unknown Customer"
PLACEHOLDER_DESCRIPTION = "Item"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InvoiceStatus(str, Enum):
    """Validation outcome written onto each invoice."""

    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class PaymentStatus(str, Enum):
    """Payment state inferred from source status text and amounts."""

    PAID = "paid"
    UNPAID = "unpaid"
    PARTIAL = "partial"
    OVERDUE = "overdue"
    PENDING = "pending"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ValidationSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationCode(str, Enum):
    """Validation issue codes for programmatic handling."""

    # Required field errors
    MISSING_INVOICE_NUMBER = "MISSING_INVOICE_NUMBER"
    MISSING_CUSTOMER_NAME = "MISSING_CUSTOMER_NAME"
    MISSING_LINE_ITEMS = "MISSING_LINE_ITEMS"
    MISSING_UNIT_PRICE = "MISSING_UNIT_PRICE"
    MISSING_DESCRIPTION = "MISSING_DESCRIPTION"
    # Format errors
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_EMAIL_FORMAT = "INVALID_EMAIL_FORMAT"
    INVALID_NUMBER_FORMAT = "INVALID_NUMBER_FORMAT"
    # Business rule errors
    NEGATIVE_QUANTITY = "NEGATIVE_QUANTITY"
    NEGATIVE_PRICE = "NEGATIVE_PRICE"
    DUPLICATE_INVOICE_NUMBER = "DUPLICATE_INVOICE_NUMBER"
    FUTURE_DATE = "FUTURE_DATE"
    # Relationship errors
    CUSTOMER_NOT_FOUND = "CUSTOMER_NOT_FOUND"
    INVOICE_NOT_FOUND = "INVOICE_NOT_FOUND"
    # File errors
    FILE_CORRUPT = "FILE_CORRUPT"
    FILE_PASSWORD_PROTECTED = "FILE_PASSWORD_PROTECTED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_EMPTY = "FILE_EMPTY"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    # Transformation
    TRANSFORM_WARNING = "TRANSFORM_WARNING"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


_MESSAGES: dict[ValidationCode, str] = {
    ValidationCode.MISSING_INVOICE_NUMBER: "Invoice number is required",
    ValidationCode.MISSING_CUSTOMER_NAME: "Customer name is required",
    ValidationCode.MISSING_LINE_ITEMS: "Invoice must have at least one line item",
    ValidationCode.MISSING_UNIT_PRICE: "Unit price is required for line items",
    ValidationCode.MISSING_DESCRIPTION: "Description is required for line items",
    ValidationCode.INVALID_DATE_FORMAT: "Invalid date format",
    ValidationCode.INVALID_EMAIL_FORMAT: "Invalid email address format",
    ValidationCode.INVALID_NUMBER_FORMAT: "Invalid number format",
    ValidationCode.NEGATIVE_QUANTITY: "Quantity cannot be negative",
    ValidationCode.NEGATIVE_PRICE: "Price cannot be negative",
    ValidationCode.DUPLICATE_INVOICE_NUMBER: "Duplicate invoice number found",
    ValidationCode.FUTURE_DATE: "Invoice date is in the future",
    ValidationCode.CUSTOMER_NOT_FOUND: "Referenced customer not found",
    ValidationCode.INVOICE_NOT_FOUND: "Referenced invoice not found",
    ValidationCode.FILE_CORRUPT: "File appears to be corrupt. Please try re-exporting from Excel",
    ValidationCode.FILE_PASSWORD_PROTECTED: (
        "File is password protected. Please remove the password and try again"
    ),
    ValidationCode.FILE_TOO_LARGE: "File is too large",
    ValidationCode.FILE_EMPTY: "File contains no data rows",
    ValidationCode.UNSUPPORTED_FORMAT: "Unsupported file format. Please use .xlsx, .xls, or .csv",
    ValidationCode.TRANSFORM_WARNING: "Warning during data transformation",
    ValidationCode.UNKNOWN_ERROR: "An unexpected error occurred",
}


def get_error_message(
    code: ValidationCode,
    value: str | None = None,
    expected: str | None = None,
) -> str:
    """Return the user-facing message for a validation code."""
    if code == ValidationCode.DUPLICATE_INVOICE_NUMBER and value:
        return f"Duplicate invoice number: {value}"
    if code == ValidationCode.INVALID_DATE_FORMAT and expected:
        return f"Invalid date format. Expected: {expected}"
    return _MESSAGES.get(code, "Unknown error")


class Address(_CamelModel):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class Customer(_CamelModel):
    """Customer/client who receives the invoice."""

    id: str
    name: str = UNKNOWN_CUSTOMER
    email: str | None = None
    phone: str | None = None
    address: Address | None = None
    tax_id: str | None = None


class Discount(_CamelModel):
    type: DiscountType
    value: Decimal


class InvoiceLineItem(_CamelModel):
    """Single line item on an invoice."""

    description: str = PLACEHOLDER_DESCRIPTION
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    discount: Discount | None = None
    tax_rate: Decimal | None = None  # percentage, e.g. 18 for 18%
    tax_amount: Decimal | None = None
    line_total: Decimal
    sku: str | None = None
    hsn_code: str | None = None


class Invoice(_CamelModel):
    """Canonical invoice produced by the transformer.

    ``status`` and ``validation_errors`` are written by the validator; every
    other field is fixed once the transformer returns.
    """

    invoice_number: str
    customer: Customer
    issue_date: datetime
    due_date: datetime | None = None
    line_items: list[InvoiceLineItem] = Field(default_factory=list)

    # Monetary fields
    currency: str = "USD"
    subtotal: Decimal = Decimal("0")
    total_tax: Decimal = Decimal("0")
    total_discount: Decimal = Decimal("0")
    grand_total: Decimal = Decimal("0")
    amount_paid: Decimal | None = None
    balance_due: Decimal | None = None

    # Metadata
    notes: str | None = None
    terms: str | None = None
    po_number: str | None = None

    # Processing metadata
    status: InvoiceStatus = InvoiceStatus.VALID
    source_status: str | None = None
    payment_status: PaymentStatus | None = None
    validation_errors: list[str] | None = None
    row_numbers: list[int] = Field(default_factory=list)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "invoiceNumber": "INV-001",
                "customer": {"id": "C1", "name": "Acme Co"},
                "issueDate": "2025-01-15T00:00:00",
                "lineItems": [
                    {"description": "Widget", "quantity": 3, "unitPrice": 10, "lineTotal": 30}
                ],
                "currency": "USD",
                "subtotal": 30,
                "grandTotal": 30,
                "rowNumbers": [2],
            }
        },
    )

    @field_validator("issue_date", "due_date")
    @classmethod
    def naive_utc(cls, v: datetime | None) -> datetime | None:
        # Dates are compared with naive local "now"
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) != 3:
            raise ValueError("currency must be a 3-letter ISO code")
        return v


class IssueDetails(_CamelModel):
    row_number: int | None = None
    column_name: str | None = None
    value: str | None = None
    expected: str | None = None
    suggestion: str | None = None


class ValidationIssue(_CamelModel):
    """A single validation error or warning."""

    severity: ValidationSeverity
    code: ValidationCode
    message: str
    details: IssueDetails = Field(default_factory=IssueDetails)


class InvoiceValidationResult(_CamelModel):
    invoice_number: str
    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class ValidationResult(_CamelModel):
    """Aggregate outcome of one validation pass."""

    is_valid: bool = True
    total_rows: int = 0
    valid_rows: int = 0
    warning_rows: int = 0
    error_rows: int = 0
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    invoice_results: list[InvoiceValidationResult] = Field(default_factory=list)


class ProcessingStats(_CamelModel):
    total: int = 0
    valid: int = 0
    warnings: int = 0
    errors: int = 0
