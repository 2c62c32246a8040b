"""Pipeline orchestrator: detect -> (confirm) -> transform -> validate.

One workbook is processed sequentially: mappings are detected per sheet,
optionally replaced by user-confirmed mappings, rows are transformed into
invoices and every invoice is validated. Transformation warnings are folded
into the validation result so callers see a single issue list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from invoiceforge.config import AppConfig, get_config
from invoiceforge.ingestion.workbook import Workbook
from invoiceforge.mapping.column_mapper import (
    ColumnMapper,
    apply_confirmed_mappings,
    missing_required_fields,
)
from invoiceforge.mapping.dictionary import get_optional_fields
from invoiceforge.mapping.format_detector import detect_excel_format, identify_sheet_roles
from invoiceforge.mapping.models import ColumnMapping, ExcelFormat, SheetRelationship, SheetRoles
from invoiceforge.mapping.relationships import detect_sheet_relationships
from invoiceforge.models import (
    Invoice,
    IssueDetails,
    ProcessingStats,
    ValidationCode,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from invoiceforge.reporting.payment import resolve_payment_status
from invoiceforge.transform.transformer import DataTransformer
from invoiceforge.validation.validator import validate_invoices

logger = logging.getLogger(__name__)


@dataclass
class SheetSummary:
    name: str
    headers: list[str]
    row_count: int


@dataclass
class DetectionReport:
    """Auto-detected mappings and workbook shape, for review before transform."""

    sheets: list[SheetSummary]
    sheet_mappings: dict[str, list[ColumnMapping]]
    mappings: list[ColumnMapping]  # primary (first processed) sheet
    unmapped_columns: list[str]
    missing_required_fields: list[str]
    optional_fields: list[str]
    excel_format: ExcelFormat
    relationships: list[SheetRelationship] = field(default_factory=list)
    sheet_roles: SheetRoles | None = None

    @property
    def is_multi_sheet(self) -> bool:
        return len(self.sheets) > 1

    @property
    def all_mappings(self) -> list[ColumnMapping]:
        return [m for mappings in self.sheet_mappings.values() for m in mappings]


@dataclass
class PipelineResult:
    invoices: list[Invoice]
    validation: ValidationResult
    stats: ProcessingStats
    warnings: list[str] = field(default_factory=list)
    relationships: list[SheetRelationship] = field(default_factory=list)


class InvoicePipeline:
    """Runs the mapping, transformation and validation stages for one workbook."""

    def __init__(self, config: AppConfig | None = None):
        self.config = config or get_config()
        self.mapper = ColumnMapper(self.config.mapping)
        self.transformer = DataTransformer(self.config.transform, mapper=self.mapper)

    def detect(
        self,
        workbook: Workbook,
        selected_sheets: list[str] | None = None,
    ) -> DetectionReport:
        """Detect column mappings for the selected sheets (all when omitted).

        Raises:
            SheetNotFoundError: If a selected sheet does not exist
        """
        sheets = workbook.select(selected_sheets)
        multi = len(sheets) > 1
        limit = self.config.mapping.sample_row_limit

        sheet_mappings: dict[str, list[ColumnMapping]] = {}
        for sheet in sheets:
            sheet_mappings[sheet.name] = self.mapper.detect(
                sheet.headers,
                sheet.sample_rows(limit),
                sheet_name=sheet.name if multi else None,
            )

        primary = sheets[0] if sheets else None
        mappings = sheet_mappings.get(primary.name, []) if primary else []
        excel_format = detect_excel_format(
            workbook.sheet_names,
            mappings,
            primary.sample_rows(limit) if primary else [],
            self.config.mapping,
        )

        relationships: list[SheetRelationship] = []
        roles = None
        if multi:
            relationships = detect_sheet_relationships(
                {s.name: s for s in sheets}, self.config.mapping
            )
            roles = identify_sheet_roles([s.name for s in sheets])

        report = DetectionReport(
            sheets=[SheetSummary(s.name, list(s.headers), s.row_count) for s in sheets],
            sheet_mappings=sheet_mappings,
            mappings=mappings,
            unmapped_columns=[m.source_column for m in mappings if not m.is_mapped],
            missing_required_fields=missing_required_fields(sheet_mappings),
            optional_fields=get_optional_fields(),
            excel_format=excel_format,
            relationships=relationships,
            sheet_roles=roles,
        )

        logger.info(
            f"Detected {excel_format.value} layout across {len(sheets)} sheet(s); "
            f"missing required: {report.missing_required_fields or 'none'}"
        )
        return report

    def run(
        self,
        workbook: Workbook,
        mappings: list[ColumnMapping] | None = None,
        sheet_mode: str | None = None,
        selected_sheets: list[str] | None = None,
        today: date | None = None,
    ) -> PipelineResult:
        """Transform and validate a workbook.

        Args:
            workbook: Decoded spreadsheet
            mappings: Confirmed mappings; auto-detected when omitted
            sheet_mode: ``"multi"`` for relational sheets, ``"single"`` for
                one sheet; auto-detected when omitted
            selected_sheets: Sheets to process (all when omitted)
            today: Reference date for payment status (defaults to today)

        Returns:
            PipelineResult with status-annotated invoices
        """
        report = None
        if mappings is None or sheet_mode is None:
            report = self.detect(workbook, selected_sheets)

        if sheet_mode is None:
            multi = report.excel_format == ExcelFormat.MULTI_SHEET
        else:
            multi = sheet_mode == "multi"

        if mappings is None:
            mappings = report.all_mappings if multi else report.mappings

        if multi and not selected_sheets:
            selected_sheets = workbook.sheet_names

        # Row grouping by invoice number covers both flat layouts
        excel_format = ExcelFormat.MULTI_SHEET if multi else ExcelFormat.FLAT_SINGLE_ROW
        transformed = self.transformer.transform(
            workbook, mappings, excel_format, selected_sheets
        )

        validation = validate_invoices(transformed.invoices)
        for warning in transformed.warnings:
            validation.warnings.append(
                ValidationIssue(
                    severity=ValidationSeverity.WARNING,
                    code=ValidationCode.TRANSFORM_WARNING,
                    message=warning,
                    details=IssueDetails(),
                )
            )

        for invoice in transformed.invoices:
            invoice.payment_status = resolve_payment_status(invoice, today)

        stats = ProcessingStats(
            total=len(transformed.invoices),
            valid=validation.valid_rows,
            warnings=validation.warning_rows,
            errors=validation.error_rows,
        )
        return PipelineResult(
            invoices=transformed.invoices,
            validation=validation,
            stats=stats,
            warnings=transformed.warnings,
            relationships=transformed.relationships,
        )


def load_mapping_file(path: Path | str) -> list[ColumnMapping]:
    """Load user-confirmed mappings from YAML.

    The file holds a list of ``{sourceColumn, targetField, sheetName?}``
    entries, either at the top level or under a ``mappings`` key.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file does not contain a list of mappings
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mapping file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("mappings")
    if not isinstance(data, list):
        raise ValueError(f"Invalid mapping file {path}: expected a list of mappings")

    mappings = apply_confirmed_mappings(data)
    logger.info(f"Loaded {len(mappings)} confirmed mapping(s) from {path}")
    return mappings


def dump_mapping_file(path: Path | str, mappings: list[ColumnMapping]) -> None:
    """Write mappings in the format ``load_mapping_file`` reads."""
    entries = []
    for m in mappings:
        entry: dict[str, Any] = {"sourceColumn": m.source_column, "targetField": m.target_field}
        if m.sheet_name:
            entry["sheetName"] = m.sheet_name
        entries.append(entry)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"mappings": entries}, f, sort_keys=False, allow_unicode=True)
