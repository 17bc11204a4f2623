"""
Security and audit logging utilities.
"""

from enum import Enum
from typing import Any

import structlog
from structlog.stdlib import BoundLogger

from .context import get_actor_id, get_correlation_id, get_request_id


class SecurityEventType(Enum):
    """Types of security events."""

    # Authentication & Authorization
    AUTH_FAILED = "auth_failed"
    AUTH_SUCCESS = "auth_success"
    MFA_FAILED = "mfa_failed"
    PERMISSION_DENIED = "permission_denied"
    TOKEN_INVALID = "token_invalid"
    ACCESS_REVOKED = "access_revoked"

    # Input Validation
    INJECTION_ATTEMPT = "injection_attempt"

    # Rate Limiting
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

    # File Security
    FILE_REJECTED = "file_rejected"


class AuditEventType(Enum):
    """Types of audit events."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    DATA_IMPORTED = "data_imported"
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"


class SecurityLogger:
    """
    Logger for security events with automatic context enrichment.
    """

    def __init__(self, component: str):
        """
        Initialize security logger.

        Args:
            component: Component name (e.g., "application.authenticate")
        """
        self.logger: BoundLogger = structlog.get_logger(f"security.{component}")
        self.component = component

    def log_security_event(
        self,
        event_type: SecurityEventType,
        message: str,
        severity: str = "WARNING",
        **context: Any,
    ) -> None:
        """
        Log a security event with full context.

        Args:
            event_type: Type of security event
            message: Human-readable message
            severity: Log level (INFO, WARNING, ERROR, CRITICAL)
            **context: Additional context data
        """
        event_data = {
            "event_type": event_type.value,
            "component": self.component,
            "request_id": get_request_id(),
            "correlation_id": get_correlation_id(),
            "actor_id": get_actor_id(),
            **context,
        }

        log_method = getattr(self.logger, severity.lower(), self.logger.warning)
        log_method(message, **event_data)

    def auth_failed(self, reason: str, email: str | None = None, **context: Any) -> None:
        """Log a rejected sign-in or MFA attempt."""
        self.log_security_event(
            SecurityEventType.AUTH_FAILED,
            "Authentication failed",
            reason=reason,
            email=email,
            **context,
        )

    def permission_denied(self, capability: str, role: str | None = None, **context: Any) -> None:
        """Log a request lacking the required capability."""
        self.log_security_event(
            SecurityEventType.PERMISSION_DENIED,
            f"Missing capability {capability}",
            capability=capability,
            role=role,
            **context,
        )

    def injection_attempt(
        self,
        injection_type: str,
        input_value: str | None = None,
        field_name: str | None = None,
        **context: Any,
    ) -> None:
        """Log an injection attempt."""
        self.log_security_event(
            SecurityEventType.INJECTION_ATTEMPT,
            f"{injection_type} injection attempt detected",
            severity="ERROR",
            injection_type=injection_type,
            field_name=field_name,
            input_length=len(input_value) if input_value else 0,
            **context,
        )

    def rate_limit_exceeded(self, resource: str, limit: int, window: str, **context: Any) -> None:
        """Log rate limit violation."""
        self.log_security_event(
            SecurityEventType.RATE_LIMIT_EXCEEDED,
            f"Rate limit exceeded for {resource}",
            resource=resource,
            limit=limit,
            window=window,
            **context,
        )

    def file_rejected(self, reason: str, filename: str | None = None, **context: Any) -> None:
        """Log an upload refused before parsing."""
        self.log_security_event(
            SecurityEventType.FILE_REJECTED,
            "Uploaded file rejected",
            reason=reason,
            filename=filename,
            **context,
        )


class AuditLogger:
    """
    Logger for audit trail mirroring the persisted audit rows.
    """

    def __init__(self, component: str):
        self.logger: BoundLogger = structlog.get_logger(f"audit.{component}")
        self.component = component

    def log_audit_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: str | None,
        action: str,
        actor_id: str | None = None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        **context: Any,
    ) -> None:
        """
        Log an audit event with full context.

        Args:
            event_type: Type of audit event
            entity_type: Type of entity affected
            entity_id: ID of entity affected
            action: Action performed
            actor_id: ID of actor performing action
            before: State before change
            after: State after change
            **context: Additional context
        """
        event_data = {
            "event_type": event_type.value,
            "component": self.component,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action,
            "actor_id": actor_id or get_actor_id(),
            "request_id": get_request_id(),
            "correlation_id": get_correlation_id(),
            **context,
        }

        if before is not None:
            event_data["before"] = before
        if after is not None:
            event_data["after"] = after

        self.logger.info(f"Audit: {action} on {entity_type}", **event_data)
