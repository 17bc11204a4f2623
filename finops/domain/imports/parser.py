"""Parser for the semicolon-delimited campaign export.

Column layout (0-indexed):

    0 status, 1 campaign name, 2 last update (unused), 3 budget, 4 sales,
    5 cpa, 6 spend, 7 revenue, 8 profit, 9 roas, 10 margin, 11 ic, 12 cpi,
    13 cpc, 14 ctr, 15 cpm, 16 impressions, 17 clicks, 18 conv_checkout,
    19 conv_body, 20 hook, 21 frequency, 22 rejected_sales

Malformed cells never abort a parse; they degrade to defaults and leave an
``ImportRowWarning`` behind.
"""

from dataclasses import dataclass
import math
import re

from finops.domain.imports.models import (
    ImportedCampaignRow,
    ImportRowWarning,
    ImportSummaryRow,
    ParsedImport,
)
from finops.domain.imports.sanitizer import MAX_SAFE_NUMBER, leading_float, leading_int, sanitize_text
from finops.domain.imports.threats import check_dangerous_content

DELIMITER = ";"
BOM = "\ufeff"
SUMMARY_MARKER = "campanhas"
COLUMN_COUNT = 23
NAME_COLUMN = 1


@dataclass(frozen=True)
class Column:
    index: int
    field: str
    kind: str  # "text", "int" or "decimal"
    non_negative: bool = True


COLUMNS = (
    Column(0, "status", "text"),
    Column(3, "budget", "text"),
    Column(4, "sales", "int"),
    Column(5, "cpa", "decimal"),
    Column(6, "spend", "decimal"),
    Column(7, "revenue", "decimal"),
    Column(8, "profit", "decimal", non_negative=False),
    Column(9, "roas", "decimal"),
    Column(10, "margin", "text"),
    Column(11, "ic", "int"),
    Column(12, "cpi", "decimal"),
    Column(13, "cpc", "decimal"),
    Column(14, "ctr", "text"),
    Column(15, "cpm", "decimal"),
    Column(16, "impressions", "int"),
    Column(17, "clicks", "int"),
    Column(18, "conv_checkout", "text"),
    Column(19, "conv_body", "text"),
    Column(20, "hook", "text"),
    Column(21, "frequency", "text"),
    Column(22, "rejected_sales", "int"),
)

_CURRENCY_PREFIX = re.compile(r"R\$\s*")
_EDGE_QUOTES = re.compile(r"^[\"']|[\"']$")


def parse_br_decimal(value: str | None) -> float:
    """Parse "R$ 1.234,56" style numbers; 0.0 for empty, N/A or garbage."""
    number = _parse_br(value, strip_currency=True)
    return float(number) if number is not None else 0.0


def parse_br_int(value: str | None) -> int:
    """Parse "1.234" style integers; 0 for empty, N/A or garbage."""
    number = _parse_br(value, strip_currency=False, integer=True)
    return int(number) if number is not None else 0


def parse_campaign_csv(text: str) -> ParsedImport:
    """
    Parse a full campaign export.

    Args:
        text: Decoded file content

    Returns:
        Optional summary row, campaign rows in file order and warnings
    """
    if text.startswith(BOM):
        text = text[len(BOM):]

    lines = [
        (number, raw.strip())
        for number, raw in enumerate(text.split("\n"), start=1)
        if raw.strip()
    ]

    summary: ImportSummaryRow | None = None
    campaigns: list[ImportedCampaignRow] = []
    warnings: list[ImportRowWarning] = []
    seen: dict[tuple, int] = {}

    # First non-blank line is the header
    for line_number, line in lines[1:]:
        cells = line.split(DELIMITER)
        cells += [""] * (COLUMN_COUNT - len(cells))

        raw_name = cells[NAME_COLUMN].strip()
        if not raw_name:
            continue

        values, row_warnings = _parse_cells(line_number, cells)
        warnings.extend(row_warnings)

        name = sanitize_text(raw_name)
        _warn_on_threat(line_number, "campaign_name", raw_name, warnings)

        if SUMMARY_MARKER in name.lower():
            if summary is not None:
                warnings.append(
                    ImportRowWarning(
                        line_number,
                        None,
                        f"Summary row replaces the one on line {summary.line}",
                    )
                )
            summary = ImportSummaryRow(line=line_number, campaign_name=name, **values)
            continue

        row = ImportedCampaignRow(line=line_number, campaign_name=name, **values)
        key = tuple(row.values().values())
        if key in seen:
            warnings.append(
                ImportRowWarning(line_number, None, f"Duplicate of the row on line {seen[key]}")
            )
        else:
            seen[key] = line_number
        campaigns.append(row)

    return ParsedImport(summary=summary, campaigns=tuple(campaigns), warnings=tuple(warnings))


def _parse_cells(line_number: int, cells: list[str]) -> tuple[dict, list[ImportRowWarning]]:
    values: dict[str, object] = {}
    warnings: list[ImportRowWarning] = []

    for column in COLUMNS:
        raw = cells[column.index]

        if column.kind == "text":
            _warn_on_threat(line_number, column.field, raw, warnings)
            values[column.field] = sanitize_text(raw.strip())
            continue

        number = _parse_br(raw, strip_currency=column.kind == "decimal", integer=column.kind == "int")
        if number is None:
            warnings.append(
                ImportRowWarning(line_number, column.field, f"Could not read number '{raw.strip()}', using 0")
            )
            number = 0
        elif column.non_negative and number < 0:
            warnings.append(
                ImportRowWarning(line_number, column.field, "Negative value replaced with 0")
            )
            number = 0

        values[column.field] = int(number) if column.kind == "int" else float(number)

    return values, warnings


def _parse_br(value: str | None, strip_currency: bool, integer: bool = False) -> float | None:
    """Return the parsed number, 0 for blank cells and None when unreadable."""
    if value is None:
        return 0
    cleaned = _EDGE_QUOTES.sub("", value.strip()).strip()
    if not cleaned or cleaned.upper() == "N/A":
        return 0

    if strip_currency:
        cleaned = _CURRENCY_PREFIX.sub("", cleaned)
    cleaned = cleaned.replace(".", "").replace(",", ".", 1).strip()

    number = leading_int(cleaned) if integer else leading_float(cleaned)
    if number is None or not math.isfinite(number) or abs(number) > MAX_SAFE_NUMBER:
        return None
    return number


def _warn_on_threat(line_number: int, column: str, raw: str, warnings: list[ImportRowWarning]) -> None:
    verdict = check_dangerous_content(raw)
    if not verdict.safe:
        warnings.append(ImportRowWarning(line_number, column, verdict.reason))
