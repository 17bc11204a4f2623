"""Cell sanitizer for spreadsheet imports.

Turns an untrusted cell into a typed value that is safe to store and to
render. It never raises: malformed input degrades to ``0``, ``None``,
``False`` or a cleaned string.
"""

from datetime import date
from enum import Enum
from typing import Any, Mapping
import math
import re

import bleach


class FieldType(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    CURRENCY = "currency"
    DATE = "date"
    BOOLEAN = "boolean"


NUMERIC_TYPES = frozenset({FieldType.INTEGER, FieldType.DECIMAL, FieldType.CURRENCY})

# Largest integer a double represents exactly
MAX_SAFE_NUMBER = 2**53 - 1

SQL_KEYWORDS = (
    "DROP", "DELETE", "INSERT", "UPDATE", "ALTER", "CREATE",
    "EXEC", "EXECUTE", "SELECT", "UNION", "DECLARE",
)

TRUTHY_VALUES = frozenset({"true", "1", "sim", "yes"})

# Spreadsheet-level names for the same types
FIELD_TYPE_ALIASES = {"string": FieldType.TEXT, "number": FieldType.DECIMAL}

_SCRIPT_BLOCK = re.compile(r"<(script|style)\b[^>]*>[\s\S]*?</\1\s*>", re.IGNORECASE)
_DANGEROUS_SCHEMES = re.compile(r"javascript:|vbscript:|data:text/html", re.IGNORECASE)
_SQL_KEYWORD = re.compile(r"\b(?:" + "|".join(SQL_KEYWORDS) + r")\b", re.IGNORECASE)
_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")
_CURRENCY_SYMBOLS = re.compile(r"[R$£€¥]|\s")
_LEADING_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_LEADING_INT = re.compile(r"[+-]?\d+", re.ASCII)

_DATE_FORMATS = (
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII), ("year", "month", "day")),
    (re.compile(r"(\d{2})/(\d{2})/(\d{4})", re.ASCII), ("day", "month", "year")),
    (re.compile(r"(\d{2})-(\d{2})-(\d{4})", re.ASCII), ("day", "month", "year")),
)


def sanitize_cell(value: Any, field_type: FieldType | str = FieldType.TEXT) -> Any:
    """
    Sanitize one raw cell.

    Args:
        value: Raw cell content (string, number or None)
        field_type: Declared type of the column

    Returns:
        ``str`` for text, ``int`` for integer, ``float`` for decimal/currency,
        ``datetime.date | None`` for date and ``bool`` for boolean
    """
    field_type = _coerce_field_type(field_type)

    if value is None or value == "":
        return _empty_value(field_type)

    text = str(value).strip()

    if field_type is FieldType.TEXT:
        return sanitize_text(text)
    if field_type in NUMERIC_TYPES:
        number = sanitize_number(text)
        return int(number) if field_type is FieldType.INTEGER else number
    if field_type is FieldType.DATE:
        return sanitize_date(text)
    return text.lower() in TRUTHY_VALUES


def _coerce_field_type(field_type: FieldType | str) -> FieldType:
    """Unknown type names are sanitized as text."""
    if isinstance(field_type, FieldType):
        return field_type
    name = str(field_type).lower()
    if name in FIELD_TYPE_ALIASES:
        return FIELD_TYPE_ALIASES[name]
    try:
        return FieldType(name)
    except ValueError:
        return FieldType.TEXT


def sanitize_row(
    row: Mapping[str, Any],
    field_types: Mapping[str, FieldType | str] | None = None,
) -> dict[str, Any]:
    """Sanitize every cell of a row; columns without a declared type are text."""
    field_types = field_types or {}
    return {
        key: sanitize_cell(value, field_types.get(key, FieldType.TEXT))
        for key, value in row.items()
    }


def sanitize_text(value: str) -> str:
    """Strip markup, SQL keywords and statement punctuation from free text."""
    cleaned = _SCRIPT_BLOCK.sub("", value)
    cleaned = bleach.clean(cleaned, tags=set(), attributes={}, strip=True, strip_comments=True)
    # bleach escapes a bare ampersand; restoring it cannot form markup
    cleaned = cleaned.replace("&amp;", "&")

    cleaned = _SQL_KEYWORD.sub("", cleaned)
    cleaned = cleaned.replace("--", "").replace("/*", "").replace("*/", "")

    cleaned = cleaned.replace("'", "''").replace('"', '""')
    cleaned = cleaned.replace("`", "").replace(";", "")
    cleaned = _CONTROL_CHARS.sub("", cleaned)

    # Removing one scheme can splice another together, e.g. "javajavascript:script:"
    while True:
        stripped = _DANGEROUS_SCHEMES.sub("", cleaned)
        if stripped == cleaned:
            break
        cleaned = stripped

    return cleaned.strip()


def sanitize_number(value: str) -> float:
    """Parse a currency-formatted number; 0.0 when it cannot be trusted."""
    cleaned = _CURRENCY_SYMBOLS.sub("", value)

    if "," in cleaned:
        # Comma is the decimal separator; only the last period survives
        cleaned = cleaned.replace(",", ".", 1)
        last_dot = cleaned.rfind(".")
        cleaned = "".join(ch for i, ch in enumerate(cleaned) if ch != "." or i == last_dot)

    number = leading_float(cleaned)
    if number is None or not math.isfinite(number) or abs(number) > MAX_SAFE_NUMBER:
        return 0.0
    return number


def sanitize_date(value: str) -> date | None:
    """Accept YYYY-MM-DD, DD/MM/YYYY and DD-MM-YYYY; None for anything else."""
    for pattern, order in _DATE_FORMATS:
        match = pattern.fullmatch(value)
        if match is None:
            continue
        parts = dict(zip(order, (int(group) for group in match.groups())))
        try:
            return date(parts["year"], parts["month"], parts["day"])
        except ValueError:
            return None
    return None


def leading_float(value: str) -> float | None:
    """Parse the longest numeric prefix, the way browsers parse floats."""
    match = _LEADING_FLOAT.match(value)
    if match is None:
        return None
    return float(match.group(0))


def leading_int(value: str) -> int | None:
    match = _LEADING_INT.match(value)
    if match is None:
        return None
    return int(match.group(0))


def _empty_value(field_type: FieldType) -> Any:
    if field_type is FieldType.TEXT:
        return ""
    if field_type is FieldType.INTEGER:
        return 0
    if field_type in NUMERIC_TYPES:
        return 0.0
    if field_type is FieldType.DATE:
        return None
    return False
