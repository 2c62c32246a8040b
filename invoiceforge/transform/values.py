"""Cell value coercion used by the transformer.

Cells arrive as text, numbers, ``datetime`` or ``None``. Everything read
through a field mapping is first reduced to trimmed text
(``get_field_value``) and then parsed as a date, number or currency code.
"""

from __future__ import annotations

import math
import re
import time
import uuid
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from invoiceforge.canonical.normalize import cell_text
from invoiceforge.reporting.formatting import currency_code_for_symbol

# Excel serial 25569 == 1970-01-01
EXCEL_EPOCH_OFFSET = 25569
_UNIX_EPOCH = datetime(1970, 1, 1)

_DAY_FIRST = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
_TEXT_MONTH = re.compile(r"^(\d{1,2})\s+(\w+)\s+(\d{4})$")
# First number token in the text; thousands commas are dropped afterwards
_NUMBER_TOKEN = re.compile(r"[+-]?(?:\d[\d,]*(?:\.\d+)?|\.\d+)(?:[eE][+-]?\d+)?")
_ISO_CODE = re.compile(r"^[A-Za-z]{3}$")

# Month-name layouts accepted as free text, tried in order
_TEXT_FORMATS = (
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def excel_serial_to_iso(serial: float) -> str | None:
    """Convert an Excel date serial to an ISO-8601 timestamp string."""
    try:
        return (_UNIX_EPOCH + timedelta(days=float(serial) - EXCEL_EPOCH_OFFSET)).isoformat()
    except (OverflowError, ValueError):
        return None


def get_field_value(row: Mapping[str, Any], field_map: Mapping[str, str], field: str) -> str:
    """Read a canonical field from a row as trimmed text.

    Returns ``""`` when the field is unmapped or the cell is empty. Numeric
    cells of date fields are treated as Excel serials.
    """
    column = field_map.get(field)
    if not column:
        return ""

    value = row.get(column)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""

    if _is_number(value) and "date" in field.lower():
        iso = excel_serial_to_iso(value)
        if iso is not None:
            return iso

    return cell_text(value)


def parse_date(value: str | date | datetime | None) -> datetime | None:
    """Tolerant date parsing.

    Tries ISO-8601, then US ``MM/DD/YYYY`` and other month-name layouts, then
    day-first ``DD/MM/YYYY`` or ``DD-MM-YYYY``, then ``DD Month YYYY``.
    Timezone-aware results are converted to naive UTC.

    Returns:
        Parsed datetime, or None if the value is empty or unparseable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return _naive(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    text = str(value).strip()
    if not text:
        return None

    try:
        return _naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in _TEXT_FORMATS[:2]:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            pass

    if _TEXT_MONTH.match(text) or not text[0].isdigit():
        for fmt in _TEXT_FORMATS[2:]:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue

    return None


def _naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_number(value: Any) -> Decimal | None:
    """Parse a numeric cell leniently.

    The first number in the text is used with thousands commas dropped, so
    currency prefixes and unit suffixes are ignored (``"Rs. 1,500"`` reads as
    1500, ``"10 pcs"`` as 10).

    Returns:
        Decimal value, or None if no number can be read
    """
    if value is None or isinstance(value, bool):
        return None
    if _is_number(value):
        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None
        return Decimal(str(value))

    match = _NUMBER_TOKEN.search(str(value))
    if not match:
        return None
    try:
        return Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None


def normalize_currency(value: str, default: str = "USD") -> str:
    """ISO 4217 code for a currency cell (code or symbol), else ``default``."""
    text = value.strip()
    if not text:
        return default
    if _ISO_CODE.match(text):
        return text.upper()
    return currency_code_for_symbol(text) or default


def generate_id() -> str:
    """Unique id for records without a source id."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"
