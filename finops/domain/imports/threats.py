"""Injection pattern detection for imported cells.

Detection is advisory: it feeds warnings and security logs while the
sanitizer decides what is stored. Input is never modified.
"""

from dataclasses import dataclass
from enum import Enum
import re


class ThreatKind(str, Enum):
    SQL = "sql"
    XSS = "xss"


SQL_REASON = "SQL pattern detected"
XSS_REASON = "XSS pattern detected"

SQL_PATTERNS = (
    re.compile(r"\bOR\b\s+(?:1\s*=\s*1|true\b)", re.IGNORECASE),
    re.compile(r"'\s*OR\s+'[^']*'\s*=\s*'", re.IGNORECASE),
    re.compile(r"\bUNION\b[\s\S]*\bSELECT\b", re.IGNORECASE),
    re.compile(r"\bDROP\b[\s\S]*\bTABLE\b", re.IGNORECASE),
    re.compile(r";\s*(?:DROP|DELETE|UPDATE|INSERT)\b", re.IGNORECASE),
    re.compile(r"--"),
    re.compile(r"/\*"),
)

XSS_PATTERNS = (
    re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"<iframe[^>]*>", re.IGNORECASE),
    re.compile(r"<object[^>]*>", re.IGNORECASE),
    re.compile(r"<embed[^>]*>", re.IGNORECASE),
)


@dataclass(frozen=True)
class ThreatVerdict:
    safe: bool
    reason: str | None = None
    kind: ThreatKind | None = None


SAFE = ThreatVerdict(safe=True)


def contains_sql_injection(value: str) -> bool:
    return any(pattern.search(value) for pattern in SQL_PATTERNS)


def contains_xss(value: str) -> bool:
    return any(pattern.search(value) for pattern in XSS_PATTERNS)


def check_dangerous_content(value: str | None) -> ThreatVerdict:
    """Classify a raw cell; SQL patterns win when both kinds are present."""
    if not value:
        return SAFE
    if contains_sql_injection(value):
        return ThreatVerdict(safe=False, reason=SQL_REASON, kind=ThreatKind.SQL)
    if contains_xss(value):
        return ThreatVerdict(safe=False, reason=XSS_REASON, kind=ThreatKind.XSS)
    return SAFE
