"""Whitelist administration."""

from dataclasses import replace
from typing import Callable, Optional

from finops.application.errors import ConflictError, NotFoundError, ValidationError
from finops.application.ports import UnitOfWork
from finops.application.use_cases.audit import AuditTrail, require
from finops.domain.entities import AllowedUser, AuditAction, snapshot
from finops.domain.errors import BusinessRuleViolationError, InvalidValueObjectError
from finops.domain.session import AppRole, Capability, SessionContext, normalize_email
from finops.shared.logging import get_logger

AUDIT_TYPE = "allowed_users"


class AllowedUserService:
    """Administrators grant, change and revoke access here."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory
        self._audit = AuditTrail("application.allowed_users")
        self._logger = get_logger("application.allowed_users")

    def list_all(self, session: SessionContext) -> list[AllowedUser]:
        require(session, Capability.ADMINISTER)
        with self._uow_factory() as uow:
            return uow.allowed_users.list_all()

    def add(self, session: SessionContext, email: str, role: AppRole = AppRole.VIEWER) -> AllowedUser:
        require(session, Capability.ADMINISTER)
        try:
            normalized = normalize_email(email)
        except InvalidValueObjectError as error:
            raise ValidationError("email", "invalid e-mail address") from error

        entry = AllowedUser(email=normalized, role=role, created_by=session.user_id)
        with self._uow_factory() as uow:
            if uow.allowed_users.get_by_email(normalized) is not None:
                raise ConflictError("E-mail is already allowed")
            uow.allowed_users.add(entry)
            self._audit.record(
                uow,
                session,
                AuditAction.CREATE,
                AUDIT_TYPE,
                entry.id,
                entry.email,
                new_values=snapshot(entry),
            )

        self._logger.info("allowed_user_added", allowed_user_id=entry.id, role=entry.role.value)
        return entry

    def update(
        self,
        session: SessionContext,
        entry_id: str,
        role: Optional[AppRole] = None,
        active: Optional[bool] = None,
    ) -> AllowedUser:
        require(session, Capability.ADMINISTER)

        with self._uow_factory() as uow:
            current = self._load(uow, entry_id)
            changes: dict = {}
            if role is not None:
                changes["role"] = AppRole(role)
            if active is not None:
                changes["active"] = active
            updated = replace(current, **changes)

            if current.email == session.email and (
                not updated.active or updated.role is not AppRole.ADMIN
            ):
                raise BusinessRuleViolationError(
                    "self_lockout", "administrators cannot demote or deactivate themselves"
                )

            uow.allowed_users.update(updated)
            self._audit.record(
                uow,
                session,
                AuditAction.UPDATE,
                AUDIT_TYPE,
                entry_id,
                updated.email,
                old_values=snapshot(current),
                new_values=snapshot(updated),
            )

        self._logger.info("allowed_user_updated", allowed_user_id=entry_id, fields=sorted(changes))
        return updated

    def remove(self, session: SessionContext, entry_id: str) -> None:
        require(session, Capability.ADMINISTER)

        with self._uow_factory() as uow:
            current = self._load(uow, entry_id)
            if current.email == session.email:
                raise BusinessRuleViolationError(
                    "self_lockout", "administrators cannot remove themselves"
                )
            uow.allowed_users.delete(entry_id)
            self._audit.record(
                uow,
                session,
                AuditAction.DELETE,
                AUDIT_TYPE,
                entry_id,
                current.email,
                old_values=snapshot(current),
            )

        self._logger.info("allowed_user_removed", allowed_user_id=entry_id)

    @staticmethod
    def _load(uow: UnitOfWork, entry_id: str) -> AllowedUser:
        entry = uow.allowed_users.get(entry_id)
        if entry is None:
            raise NotFoundError(AUDIT_TYPE, entry_id)
        return entry
