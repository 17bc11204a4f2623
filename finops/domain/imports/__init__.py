"""Campaign spreadsheet import: sanitizing, threat detection and parsing."""

from finops.domain.imports.file_validation import decode_csv_content, validate_csv_file
from finops.domain.imports.models import (
    ImportedCampaignRow,
    ImportRowWarning,
    ImportSummaryRow,
    ImportTotals,
    ParsedImport,
)
from finops.domain.imports.parser import parse_br_decimal, parse_br_int, parse_campaign_csv
from finops.domain.imports.sanitizer import FieldType, sanitize_cell, sanitize_row
from finops.domain.imports.threats import ThreatKind, ThreatVerdict, check_dangerous_content

__all__ = [
    "FieldType",
    "ImportRowWarning",
    "ImportSummaryRow",
    "ImportTotals",
    "ImportedCampaignRow",
    "ParsedImport",
    "ThreatKind",
    "ThreatVerdict",
    "check_dangerous_content",
    "decode_csv_content",
    "parse_br_decimal",
    "parse_br_int",
    "parse_campaign_csv",
    "sanitize_cell",
    "sanitize_row",
    "validate_csv_file",
]
