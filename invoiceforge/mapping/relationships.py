"""Foreign-key discovery between sheets of a relational workbook."""

from __future__ import annotations

import re
from collections.abc import Mapping

from invoiceforge.canonical.normalize import cell_text
from invoiceforge.config import MappingConfig, get_config
from invoiceforge.mapping.models import SheetRelationship

# (foreign-key column pattern, sheet-name pattern of the table it points at)
FOREIGN_KEY_PATTERNS: tuple[tuple[re.Pattern[str], re.Pattern[str]], ...] = (
    (re.compile(r"customer[_\s]?id", re.I), re.compile(r"customer|client|contact", re.I)),
    (re.compile(r"client[_\s]?id", re.I), re.compile(r"customer|client|contact", re.I)),
    (re.compile(r"invoice[_\s]?id", re.I), re.compile(r"invoice|bill|header", re.I)),
    (re.compile(r"inv[_\s]?id", re.I), re.compile(r"invoice|bill|header", re.I)),
    (re.compile(r"order[_\s]?id", re.I), re.compile(r"order|header", re.I)),
)
_ID_COLUMN = re.compile(r"^id$", re.I)


def _column_values(rows, column: str) -> set[str]:
    return {text for row in rows if (text := cell_text(row.get(column)))}


def detect_sheet_relationships(
    sheets: Mapping[str, object],
    config: MappingConfig | None = None,
) -> list[SheetRelationship]:
    """Find id-like columns in one sheet that reference another sheet.

    For each ordered pair of sheets, a column matching a foreign-key pattern is
    linked to the first column of the target sheet that matches the same
    pattern, is literally ``id``, or has the same name. Confidence is the
    percentage of distinct source values also present in the target column.

    Args:
        sheets: Sheet name to an object with ``headers`` and ``rows``
            (``SheetData``)

    Returns:
        Relationships at or above the confidence floor, deduplicated and
        sorted by confidence descending
    """
    config = config or get_config().mapping
    found: dict[tuple[str, str, str, str], SheetRelationship] = {}

    for from_name, from_sheet in sheets.items():
        for to_name, to_sheet in sheets.items():
            if from_name == to_name:
                continue

            for from_col in from_sheet.headers:
                for column_pattern, sheet_pattern in FOREIGN_KEY_PATTERNS:
                    if not (column_pattern.search(from_col) and sheet_pattern.search(to_name)):
                        continue

                    to_col = next(
                        (
                            h
                            for h in to_sheet.headers
                            if column_pattern.search(h)
                            or _ID_COLUMN.match(h)
                            or h.lower() == from_col.lower()
                        ),
                        None,
                    )
                    if to_col is None:
                        continue

                    from_values = _column_values(from_sheet.rows, from_col)
                    if not from_values:
                        continue
                    to_values = _column_values(to_sheet.rows, to_col)
                    overlap = len(from_values & to_values)
                    confidence = round(overlap / len(from_values) * 100)

                    if confidence >= config.relationship_min_confidence:
                        rel = SheetRelationship(from_name, from_col, to_name, to_col, confidence)
                        found.setdefault(rel.key, rel)

    return sorted(found.values(), key=lambda r: r.confidence, reverse=True)
