"""Header normalization shared by the exact and fuzzy mapping stages."""

from __future__ import annotations

import math
import re
from datetime import date, datetime

_SEPARATORS = re.compile(r"[_\-./\\]")
_WHITESPACE = re.compile(r"\s+")
_BRACKETS = re.compile(r"[()\[\]{}]")


def normalize_header(header: str | None) -> str:
    """Canonicalize a raw column header for comparison.

    Lower-cases, turns ``_ - . / \\`` into spaces, collapses whitespace and
    drops bracket characters.

    >>> normalize_header("  Invoice_No. (Primary) ")
    'invoice no primary'
    """
    if not header:
        return ""
    s = str(header).lower().strip()
    s = _SEPARATORS.sub(" ", s)
    s = _WHITESPACE.sub(" ", s)
    s = _BRACKETS.sub("", s)
    return s.strip()


def cell_text(value: object) -> str:
    """Render a raw cell as trimmed text ("" for empty cells).

    Whole floats lose their ``.0`` so ``3.0`` from a spreadsheet reads ``"3"``.
    """
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def normalize_key(value: object) -> str:
    """Lookup key for id-like cell values (trimmed, lower-cased)."""
    return cell_text(value).lower()
