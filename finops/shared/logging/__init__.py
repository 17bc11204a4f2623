"""
FinOps structured logging with PII masking.

This module provides structured logging capabilities with:
- Sensitive data masking (credentials, e-mails, MFA codes)
- Request and actor context tracking
- Security event auditing
- Correlation ID management
"""

from .factory import configure_logging, get_logger
from .sanitizers import mask_sensitive_data, sanitize_for_log
from .context import (
    bind_actor,
    bind_request_context,
    clear_request_context,
    get_actor_id,
    get_correlation_id,
    get_request_id,
)
from .security import AuditEventType, AuditLogger, SecurityEventType, SecurityLogger

__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "sanitize_for_log",
    "bind_actor",
    "bind_request_context",
    "clear_request_context",
    "get_actor_id",
    "get_correlation_id",
    "get_request_id",
    "AuditEventType",
    "AuditLogger",
    "SecurityEventType",
    "SecurityLogger",
]
