"""Spreadsheet ingestion for InvoiceForge.

Decodes CSV/XLSX uploads into an in-memory ``Workbook`` of ``SheetData``
(ordered headers + string-keyed rows). Cells keep their native type: text,
numbers, ``datetime`` for date-formatted cells, ``None`` for blanks. Raw
Excel date serials are passed through untouched; the transformer converts
them.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Union

import pandas as pd

from invoiceforge.config import IngestionConfig, get_config

logger = logging.getLogger(__name__)

CellValue = Union[str, int, float, Decimal, datetime, date, None]
Row = dict[str, CellValue]

SUPPORTED_SUFFIXES = (".xlsx", ".xlsm", ".xls", ".csv")
_OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class WorkbookError(ValueError):
    """Raised when an upload cannot be decoded into sheets."""

    def __init__(self, message: str, code: str = "FILE_CORRUPT"):
        super().__init__(message)
        self.code = code


class SheetNotFoundError(WorkbookError, KeyError):
    """Raised when a requested sheet is absent from the workbook."""

    def __init__(self, sheet_name: str):
        super().__init__(f'Sheet "{sheet_name}" not found', code="SHEET_NOT_FOUND")
        self.sheet_name = sheet_name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


@dataclass
class SheetData:
    """One sheet: ordered headers and its data rows (header row excluded)."""

    name: str
    headers: list[str]
    rows: list[Row] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def sample_rows(self, limit: int = 10) -> list[Row]:
        return self.rows[:limit]

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Iterable[Mapping[str, Any]],
        headers: Sequence[str] | None = None,
    ) -> SheetData:
        """Build a sheet from dict rows.

        Headers default to the keys of the records in first-seen order.
        """
        rows = [dict(r) for r in records]
        if headers is None:
            ordered: dict[str, None] = {}
            for row in rows:
                ordered.update(dict.fromkeys(row))
            headers = list(ordered)
        return cls(name=name, headers=list(headers), rows=rows)


@dataclass
class Workbook:
    """Ordered collection of sheets from one upload."""

    sheets: dict[str, SheetData] = field(default_factory=dict)
    source: Path | None = None

    @classmethod
    def from_sheets(cls, *sheets: SheetData, source: Path | None = None) -> Workbook:
        return cls(sheets={s.name: s for s in sheets}, source=source)

    @property
    def sheet_names(self) -> list[str]:
        return list(self.sheets)

    def sheet(self, name: str | None = None) -> SheetData:
        """Return the named sheet, or the first sheet when ``name`` is None.

        Raises:
            SheetNotFoundError: If the sheet does not exist (or the workbook
                is empty and no name was given)
        """
        if name is None:
            if not self.sheets:
                raise SheetNotFoundError("<first>")
            return next(iter(self.sheets.values()))
        try:
            return self.sheets[name]
        except KeyError:
            raise SheetNotFoundError(name) from None

    def select(self, names: Sequence[str] | None = None) -> list[SheetData]:
        """Sheets in the requested order (all sheets when ``names`` is empty)."""
        if not names:
            return list(self.sheets.values())
        return [self.sheet(n) for n in names]


def _clean_cell(value: Any) -> CellValue:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if hasattr(value, "item") and not isinstance(value, (datetime, date)):
        # numpy scalars
        return value.item()
    return value


def _clean_headers(columns: Iterable[Any]) -> list[str]:
    headers = []
    for index, column in enumerate(columns):
        text = str(column).strip()
        if not text or text.startswith("Unnamed:"):
            text = f"Column {index + 1}"
        headers.append(text)
    return headers


def dataframe_to_sheet(name: str, df: pd.DataFrame) -> SheetData:
    """Convert a pandas DataFrame into ``SheetData``."""
    headers = _clean_headers(df.columns)
    rows: list[Row] = []
    for values in df.itertuples(index=False, name=None):
        rows.append({h: _clean_cell(v) for h, v in zip(headers, values)})
    return SheetData(name=str(name), headers=headers, rows=rows)


def load_workbook(file_path: Path | str, config: IngestionConfig | None = None) -> Workbook:
    """Load a CSV or Excel file into a ``Workbook``.

    Excel files load every sheet in workbook order; CSV files become a single
    sheet named ``Sheet1``.

    Args:
        file_path: Path to .xlsx/.xlsm/.xls/.csv file
        config: Upload limits (defaults to global configuration)

    Returns:
        Workbook with one ``SheetData`` per sheet

    Raises:
        FileNotFoundError: If file doesn't exist
        WorkbookError: If the file is empty, too large, password protected,
            unreadable or of an unsupported type
    """
    config = config or get_config().ingestion
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Workbook file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise WorkbookError(
            f"Unsupported file format: {file_path.suffix}. Use .xlsx, .xls, or .csv",
            code="UNSUPPORTED_FORMAT",
        )

    size = file_path.stat().st_size
    if size == 0:
        raise WorkbookError("File is empty", code="FILE_EMPTY")
    file_size_mb = size / (1024 * 1024)
    if file_size_mb > config.max_file_size_mb:
        raise WorkbookError(
            f"File too large ({file_size_mb:.1f}MB). "
            f"Maximum allowed: {config.max_file_size_mb}MB",
            code="FILE_TOO_LARGE",
        )

    if suffix in (".xlsx", ".xlsm"):
        with file_path.open("rb") as fh:
            if fh.read(len(_OLE_SIGNATURE)) == _OLE_SIGNATURE:
                # Encrypted OOXML packages are wrapped in an OLE container
                raise WorkbookError(
                    "File is password protected. Please remove the password and try again",
                    code="FILE_PASSWORD_PROTECTED",
                )

    try:
        if suffix == ".csv":
            frames = {"Sheet1": pd.read_csv(file_path, dtype=object)}
        else:
            frames = pd.read_excel(file_path, sheet_name=None, dtype=object)
    except pd.errors.EmptyDataError as e:
        raise WorkbookError("File contains no data rows", code="FILE_EMPTY") from e
    except Exception as e:
        if "password" in str(e).lower() or "encrypt" in str(e).lower():
            raise WorkbookError(
                "File is password protected. Please remove the password and try again",
                code="FILE_PASSWORD_PROTECTED",
            ) from e
        raise WorkbookError(
            f"File appears to be corrupt or invalid: {e}", code="FILE_CORRUPT"
        ) from e

    sheets = [dataframe_to_sheet(name, df) for name, df in frames.items()]

    total_rows = sum(s.row_count for s in sheets)
    if total_rows > config.max_rows:
        raise WorkbookError(
            f"Too many rows ({total_rows:,}). Maximum allowed: {config.max_rows:,}",
            code="FILE_TOO_LARGE",
        )
    if total_rows == 0:
        raise WorkbookError("File contains no data rows", code="FILE_EMPTY")

    logger.info(
        f"Loaded {file_path.name}: {len(sheets)} sheet(s), {total_rows} row(s)"
    )
    return Workbook.from_sheets(*sheets, source=file_path)
