"""Data models for the column-mapping engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ExcelFormat(str, Enum):
    """Row-grouping shape of an uploaded workbook."""

    FLAT_SINGLE_ROW = "flat_single_row"  # One row = one invoice with one item
    FLAT_MULTI_ROW = "flat_multi_row"  # Rows grouped by invoice number
    MULTI_SHEET = "multi_sheet"  # Separate customers / invoices / items sheets


class SheetRole(str, Enum):
    """Purpose of a sheet in relational (multi-sheet) mode."""

    CUSTOMERS = "customers"
    INVOICES = "invoices"
    ITEMS = "items"


@dataclass(frozen=True)
class FieldDefinition:
    """Canonical invoice field with its known header variants.

    Patterns are ordered by priority: earlier entries win ties.
    """

    field: str
    patterns: tuple[str, ...]
    required: bool = False
    data_type_hints: tuple[str, ...] = ()


@dataclass
class ColumnMapping:
    """Mapping of one source column onto a canonical field (or none)."""

    source_column: str
    target_field: str | None
    confidence: int = 0
    sample_values: list[str] = field(default_factory=list)
    sheet_name: str | None = None

    @property
    def is_mapped(self) -> bool:
        return self.target_field is not None

    def to_dict(self) -> dict:
        data = {
            "sourceColumn": self.source_column,
            "targetField": self.target_field,
            "confidence": self.confidence,
            "sampleValues": list(self.sample_values),
        }
        if self.sheet_name:
            data["sheetName"] = self.sheet_name
        return data


@dataclass(frozen=True)
class SheetRelationship:
    """Inferred foreign-key link between two sheets."""

    from_sheet: str
    from_column: str
    to_sheet: str
    to_column: str
    confidence: int  # % of from_column values found in to_column

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.from_sheet, self.from_column, self.to_sheet, self.to_column)


@dataclass
class SheetRoles:
    """Sheet names assigned to each relational role."""

    customers: str | None = None
    invoices: str | None = None
    items: str | None = None

    def get(self, role: SheetRole) -> str | None:
        return getattr(self, role.value)
