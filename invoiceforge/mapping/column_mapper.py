"""Column mapping: spreadsheet headers onto canonical invoice fields.

Two-stage lookup per header:
1. Exact match of the normalized header against the pattern dictionary
   (confidence 100).
2. RapidFuzz token_sort_ratio over every pattern, best unclaimed field at or
   above the configured floor.

A canonical field is claimed by at most one header per sheet; the first
header in scan order wins.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from rapidfuzz import fuzz, process

from invoiceforge.canonical.normalize import cell_text, normalize_header
from invoiceforge.config import MappingConfig, get_config
from invoiceforge.mapping.dictionary import FIELD_DEFINITIONS, get_required_fields
from invoiceforge.mapping.models import ColumnMapping, FieldDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PatternEntry:
    pattern: str  # normalized
    field: str
    position: int  # index in the field's own pattern list


def _build_index(
    definitions: Iterable[FieldDefinition],
) -> tuple[dict[str, str], list[_PatternEntry]]:
    """Build the exact lookup and the flat fuzzy index.

    When two fields share a pattern, the exact lookup keeps the field where
    the pattern sits earlier in its own list (ties keep the earlier field).
    """
    exact: dict[str, tuple[str, int]] = {}
    entries: list[_PatternEntry] = []

    for definition in definitions:
        seen: set[str] = set()
        for position, raw in enumerate(definition.patterns):
            pattern = normalize_header(raw)
            if not pattern or pattern in seen:
                continue
            seen.add(pattern)
            entries.append(_PatternEntry(pattern, definition.field, position))

            current = exact.get(pattern)
            if current is None or position < current[1]:
                exact[pattern] = (definition.field, position)

    return {pattern: field for pattern, (field, _) in exact.items()}, entries


def get_sample_values(
    rows: Sequence[Mapping[str, Any]],
    column: str,
    row_limit: int = 10,
    value_limit: int = 5,
) -> list[str]:
    """Distinct non-empty values of ``column`` from the first ``row_limit`` rows."""
    values: list[str] = []
    for row in rows[:row_limit]:
        text = cell_text(row.get(column))
        if text and text not in values:
            values.append(text)
            if len(values) >= value_limit:
                break
    return values


class ColumnMapper:
    """Exact + fuzzy header matcher over the field dictionary."""

    def __init__(
        self,
        config: MappingConfig | None = None,
        definitions: Sequence[FieldDefinition] = FIELD_DEFINITIONS,
    ):
        self.config = config or get_config().mapping
        self._exact, self._entries = _build_index(definitions)
        self._choices = [entry.pattern for entry in self._entries]

    def detect(
        self,
        headers: Sequence[str],
        sample_rows: Sequence[Mapping[str, Any]] = (),
        sheet_name: str | None = None,
    ) -> list[ColumnMapping]:
        """Map each header onto at most one canonical field.

        Args:
            headers: Column headers in sheet order
            sample_rows: Leading data rows, used only for sample values
            sheet_name: Recorded on every mapping (relational mode)

        Returns:
            Mapped headers in scan order, followed by unmapped headers
            (``target_field=None``, confidence 0) in original order
        """
        used_fields: set[str] = set()
        mapped: dict[str, ColumnMapping] = {}

        for header in headers:
            if header in mapped:
                continue
            normalized = normalize_header(header)
            target, confidence = self._match(normalized, used_fields)
            if target is None:
                continue
            used_fields.add(target)
            mapped[header] = ColumnMapping(
                source_column=header,
                target_field=target,
                confidence=confidence,
                sample_values=self._samples(sample_rows, header),
                sheet_name=sheet_name,
            )

        mappings = list(mapped.values())
        emitted = set(mapped)
        for header in headers:
            if header not in emitted:
                emitted.add(header)
                mappings.append(
                    ColumnMapping(
                        source_column=header,
                        target_field=None,
                        confidence=0,
                        sample_values=self._samples(sample_rows, header),
                        sheet_name=sheet_name,
                    )
                )

        logger.info(
            f"Mapped {len(mapped)}/{len(headers)} columns"
            + (f" on sheet '{sheet_name}'" if sheet_name else "")
        )
        return mappings

    def _match(self, normalized: str, used_fields: set[str]) -> tuple[str | None, int]:
        if not normalized:
            return None, 0

        exact = self._exact.get(normalized)
        if exact is not None and exact not in used_fields:
            return exact, 100

        results = process.extract(
            normalized,
            self._choices,
            scorer=fuzz.token_sort_ratio,
            score_cutoff=self.config.fuzzy_min_confidence,
            limit=None,
        )
        # Best score first, then earlier pattern position, then catalog order
        results.sort(key=lambda r: (-r[1], self._entries[r[2]].position, r[2]))

        for _, score, index in results:
            entry = self._entries[index]
            if entry.field in used_fields:
                continue
            confidence = round(score)
            logger.debug(
                f"Fuzzy match '{normalized}' -> {entry.field} "
                f"via '{entry.pattern}' ({confidence})"
            )
            return entry.field, confidence

        return None, 0

    def _samples(self, rows: Sequence[Mapping[str, Any]], column: str) -> list[str]:
        return get_sample_values(
            rows,
            column,
            row_limit=self.config.sample_row_limit,
            value_limit=self.config.sample_value_limit,
        )


_default_mapper: ColumnMapper | None = None


def detect_column_mappings(
    headers: Sequence[str],
    sample_rows: Sequence[Mapping[str, Any]] = (),
    config: MappingConfig | None = None,
    sheet_name: str | None = None,
) -> list[ColumnMapping]:
    """Detect column mappings for one sheet.

    Uses a shared mapper built from the global configuration unless an
    explicit ``config`` is given. The shared mapper is rebuilt whenever the
    global configuration is reloaded.
    """
    global _default_mapper
    if config is not None:
        return ColumnMapper(config).detect(headers, sample_rows, sheet_name)
    current = get_config().mapping
    if _default_mapper is None or _default_mapper.config is not current:
        _default_mapper = ColumnMapper(current)
    return _default_mapper.detect(headers, sample_rows, sheet_name)


def missing_required_fields(
    mappings: Iterable[ColumnMapping] | Mapping[str, Iterable[ColumnMapping]],
) -> list[str]:
    """Required canonical fields that no header claims.

    Accepts one sheet's mappings or a ``{sheet_name: mappings}`` dict; in the
    latter case a field mapped on any sheet counts as present.
    """
    if isinstance(mappings, Mapping):
        groups: Iterable[Iterable[ColumnMapping]] = mappings.values()
    else:
        groups = [mappings]

    mapped = {m.target_field for group in groups for m in group if m.target_field}
    return [field for field in get_required_fields() if field not in mapped]


def apply_confirmed_mappings(
    confirmed: Iterable[Mapping[str, Any] | ColumnMapping],
) -> list[ColumnMapping]:
    """Turn user-confirmed entries into mappings with confidence 100.

    Entries are ``{"sourceColumn", "targetField", "sheetName"?}`` dicts (or
    ``ColumnMapping`` objects). A null ``targetField`` keeps the column
    explicitly unmapped.

    Raises:
        ValueError: If an entry has no source column or two entries on the same
            sheet claim the same field
    """
    result: list[ColumnMapping] = []
    claimed: set[tuple[str | None, str]] = set()

    for entry in confirmed:
        if isinstance(entry, ColumnMapping):
            source, target, sheet = entry.source_column, entry.target_field, entry.sheet_name
        else:
            source = entry.get("sourceColumn") or entry.get("source_column")
            target = entry.get("targetField", entry.get("target_field"))
            sheet = entry.get("sheetName", entry.get("sheet_name"))

        if not source:
            raise ValueError(f"Confirmed mapping without a source column: {entry!r}")

        if target:
            key = (sheet, target)
            if key in claimed:
                raise ValueError(
                    f"Field '{target}' is mapped more than once"
                    + (f" on sheet '{sheet}'" if sheet else "")
                )
            claimed.add(key)

        result.append(
            ColumnMapping(
                source_column=str(source),
                target_field=target or None,
                confidence=100,
                sample_values=[],
                sheet_name=sheet,
            )
        )

    return result
