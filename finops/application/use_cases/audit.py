"""Audit trail writing and listing."""

from typing import Any, Callable, Optional

from finops.application.errors import AuthorizationError
from finops.application.ports import UnitOfWork
from finops.domain.entities import AuditAction, AuditLogEntry, LoginAuditEntry
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import AuditEventType, AuditLogger

_EVENT_TYPES = {
    AuditAction.CREATE: AuditEventType.CREATE,
    AuditAction.UPDATE: AuditEventType.UPDATE,
    AuditAction.DELETE: AuditEventType.DELETE,
}


def require(session: SessionContext, capability: Capability) -> None:
    """Raise AuthorizationError unless the session holds ``capability``."""
    if not session.has(capability):
        raise AuthorizationError(capability.value)


class AuditTrail:
    """Writes audit rows inside the caller's unit of work."""

    def __init__(self, component: str) -> None:
        self._audit_logger = AuditLogger(component)

    def record(
        self,
        uow: UnitOfWork,
        session: Optional[SessionContext],
        action: AuditAction,
        entity_type: str,
        entity_id: str,
        entity_name: Optional[str] = None,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
        event_type: Optional[AuditEventType] = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            old_values=old_values,
            new_values=new_values,
            user_id=session.user_id if session else None,
            user_name=session.audit_name if session else "Sistema",
        )
        uow.audit_logs.add(entry)

        self._audit_logger.log_audit_event(
            event_type or _EVENT_TYPES[action],
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=entry.user_id,
            before=old_values,
            after=new_values,
        )
        return entry


class ListAuditLogsUseCase:
    """Latest audit rows, newest first."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], limit: int = 500) -> None:
        self._uow_factory = uow_factory
        self._limit = limit

    def execute(self, session: SessionContext) -> list[AuditLogEntry]:
        require(session, Capability.VIEW)
        with self._uow_factory() as uow:
            return uow.audit_logs.list_all(limit=self._limit)


class ListLoginAuditUseCase:
    """Latest sign-in attempts; administrators only."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], limit: int = 500) -> None:
        self._uow_factory = uow_factory
        self._limit = limit

    def execute(self, session: SessionContext) -> list[LoginAuditEntry]:
        require(session, Capability.ADMINISTER)
        with self._uow_factory() as uow:
            return uow.login_audit.list_all(limit=self._limit)
