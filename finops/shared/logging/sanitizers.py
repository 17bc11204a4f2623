"""
PII masking for structured logs.
"""

import re
from typing import Any

from structlog.types import EventDict, WrappedLogger

# Field names that must never reach a log sink in clear text
SENSITIVE_PATTERNS = [
    r"password",
    r"pwd",
    r"secret",
    r"token",
    r"api_key",
    r"apikey",
    r"authorization",
    r"credential",
    r"private",
    r"mfa_code",
    r"otp",
    r"cpf",
    r"cnpj",
    r"card_number",
]

# Fields that should be partially masked
PARTIAL_MASK_FIELDS = {
    "email": lambda v: _mask_email(v),
    "user_email": lambda v: _mask_email(v),
    "ip_address": lambda v: _mask_ip(v),
    "receipt_url": lambda v: _mask_url(v),
}


class PIIMaskingProcessor:
    """
    Structlog processor that masks sensitive data in log events.
    """

    def __call__(
        self,
        logger: WrappedLogger,
        name: str,
        event_dict: EventDict,
    ) -> EventDict:
        """Process log event and mask sensitive data."""
        return sanitize_for_log(event_dict)


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Sanitize a dictionary for logging.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized dictionary with masked sensitive data
    """
    sanitized = {}

    for key, value in data.items():
        if _is_sensitive_field(key):
            sanitized[key] = "***REDACTED***"
        elif key in PARTIAL_MASK_FIELDS:
            sanitized[key] = PARTIAL_MASK_FIELDS[key](str(value)) if value is not None else None
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_log(value)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_for_log(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def mask_sensitive_data(data_type: str, value: str) -> str:
    """
    Mask sensitive data according to its type.

    Args:
        data_type: Type of data to mask
        value: Value to mask

    Returns:
        Masked value
    """
    if not value:
        return "***"

    maskers = {
        "email": _mask_email,
        "ip_address": _mask_ip,
        "receipt_url": _mask_url,
        "user_id": lambda v: _mask_id(v, "user"),
    }

    masker = maskers.get(data_type, lambda v: "***MASKED***")
    return masker(value)


def _is_sensitive_field(field_name: str) -> bool:
    """Check if a field name indicates sensitive data."""
    field_lower = field_name.lower()
    return any(re.search(pattern, field_lower) for pattern in SENSITIVE_PATTERNS)


def _mask_email(value: str) -> str:
    """Mask email keeping domain."""
    if "@" in value:
        local, domain = value.rsplit("@", 1)
        if len(local) > 2:
            return f"{local[0]}***@{domain}"
        return f"***@{domain}"
    return "***"


def _mask_ip(value: str) -> str:
    """Keep the network part of an IPv4 address."""
    parts = value.split(".")
    if len(parts) == 4:
        return f"{parts[0]}.{parts[1]}.***"
    return "***"


def _mask_url(value: str) -> str:
    """Keep only scheme and host of a URL."""
    match = re.match(r"^([a-z][a-z0-9+.-]*://[^/]+)", value, re.IGNORECASE)
    if match:
        return f"{match.group(1)}/***"
    return "***"


def _mask_id(value: str, prefix: str) -> str:
    """Mask IDs keeping prefix and last 4 chars."""
    if len(value) > 8:
        return f"{prefix}_***{value[-4:]}"
    return f"{prefix}_***"
