"""Audited create/read/update/delete for finance records."""

from dataclasses import dataclass, fields, replace
import time
from typing import Any, Callable, Generic, Mapping, Optional, Sequence, TypeVar

from finops.application.errors import NotFoundError, ValidationError
from finops.application.ports import Clock, Repository, UnitOfWork
from finops.application.use_cases.audit import AuditTrail, require
from finops.domain.entities import (
    AdCampaign,
    AdPerformance,
    AuditAction,
    Collaborator,
    Platform,
    ReimbursementStatus,
    Tax,
    Tool,
    VariableExpense,
    Withdrawal,
    snapshot,
)
from finops.domain.errors import InvalidValueObjectError
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import get_logger

E = TypeVar("E")

# Never writable through update()
_PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "roas"})


@dataclass(frozen=True)
class EntityDefinition(Generic[E]):
    """How one record type is stored, named in the audit trail and guarded."""

    entity_class: type[E]
    audit_type: str
    repository: str
    display_name: Callable[[E], str]
    delete_capability: Capability = Capability.EDIT

    def repo(self, uow: UnitOfWork) -> Repository[E]:
        return getattr(uow, self.repository)


PLATFORMS = EntityDefinition(Platform, "platforms", "platforms", lambda p: p.name)
TOOLS = EntityDefinition(Tool, "tools", "tools", lambda t: t.name)
COLLABORATORS = EntityDefinition(Collaborator, "collaborators", "collaborators", lambda c: c.name)
AD_PERFORMANCE = EntityDefinition(
    AdPerformance,
    "ad_performance",
    "ad_performance",
    lambda a: f"{a.platform.value} - {a.date.isoformat()}",
)
WITHDRAWALS = EntityDefinition(
    Withdrawal,
    "withdrawals",
    "withdrawals",
    lambda w: f"R$ {w.amount} - {w.reason}",
)
TAXES = EntityDefinition(Tax, "taxes", "taxes", lambda t: t.description)
VARIABLE_EXPENSES = EntityDefinition(
    VariableExpense,
    "variable_expense",
    "variable_expenses",
    lambda v: v.description,
    delete_capability=Capability.ADMINISTER,
)


class EntityService(Generic[E]):
    """
    CRUD over one record type.

    Listing needs ``view``; writes need ``edit`` (or the definition's delete
    capability). Every write stores an audit row in the same unit of work.
    """

    def __init__(
        self,
        definition: EntityDefinition[E],
        uow_factory: Callable[[], UnitOfWork],
        clock: Clock,
    ) -> None:
        self.definition = definition
        self._uow_factory = uow_factory
        self._clock = clock
        self._audit = AuditTrail(f"application.{definition.audit_type}")
        self._logger = get_logger(f"application.{definition.audit_type}")

    def list_all(self, session: SessionContext) -> list[E]:
        require(session, Capability.VIEW)
        with self._uow_factory() as uow:
            return self.definition.repo(uow).list_all()

    def get(self, session: SessionContext, entity_id: str) -> E:
        require(session, Capability.VIEW)
        with self._uow_factory() as uow:
            return self._load(uow, entity_id)

    def create(self, session: SessionContext, values: Mapping[str, Any]) -> E:
        require(session, Capability.EDIT)
        entity = self._build(values)
        start = time.time()

        with self._uow_factory() as uow:
            self.definition.repo(uow).add(entity)
            self._audit.record(
                uow,
                session,
                AuditAction.CREATE,
                self.definition.audit_type,
                entity.id,
                self.definition.display_name(entity),
                new_values=snapshot(entity),
            )

        self._logger.info(
            "entity_created",
            entity_id=entity.id,
            duration_ms=(time.time() - start) * 1000,
        )
        return entity

    def update(self, session: SessionContext, entity_id: str, changes: Mapping[str, Any]) -> E:
        require(session, Capability.EDIT)
        self._check_fields(changes)

        with self._uow_factory() as uow:
            current = self._load(uow, entity_id)
            updated = self._apply(current, changes)
            self.definition.repo(uow).update(updated)
            self._audit.record(
                uow,
                session,
                AuditAction.UPDATE,
                self.definition.audit_type,
                entity_id,
                self.definition.display_name(updated),
                old_values=snapshot(current),
                new_values=snapshot(updated),
            )

        self._logger.info("entity_updated", entity_id=entity_id, fields=sorted(changes))
        return updated

    def delete(self, session: SessionContext, entity_id: str) -> None:
        require(session, self.definition.delete_capability)

        with self._uow_factory() as uow:
            current = self._load(uow, entity_id)
            self.definition.repo(uow).delete(entity_id)
            self._audit.record(
                uow,
                session,
                AuditAction.DELETE,
                self.definition.audit_type,
                entity_id,
                self.definition.display_name(current),
                old_values=snapshot(current),
            )

        self._logger.info("entity_deleted", entity_id=entity_id)

    def _load(self, uow: UnitOfWork, entity_id: str) -> E:
        entity = self.definition.repo(uow).get(entity_id)
        if entity is None:
            raise NotFoundError(self.definition.audit_type, entity_id)
        return entity

    def _build(self, values: Mapping[str, Any]) -> E:
        self._check_fields(values)
        try:
            return self.definition.entity_class(**values)
        except TypeError as error:
            raise ValidationError(self.definition.audit_type, "missing required fields") from error
        except (ValueError, InvalidValueObjectError) as error:
            raise ValidationError(self.definition.audit_type, str(error)) from error

    def _apply(self, current: E, changes: Mapping[str, Any]) -> E:
        extra: dict[str, Any] = {}
        if "updated_at" in _field_names(self.definition.entity_class):
            extra["updated_at"] = self._clock.now()
        try:
            return replace(current, **changes, **extra)
        except (ValueError, InvalidValueObjectError) as error:
            raise ValidationError(self.definition.audit_type, str(error)) from error

    def _check_fields(self, values: Mapping[str, Any]) -> None:
        allowed = _field_names(self.definition.entity_class) - _PROTECTED_FIELDS
        unknown = set(values) - allowed
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "unknown or read-only field")


class TaxService(EntityService[Tax]):
    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock) -> None:
        super().__init__(TAXES, uow_factory, clock)

    def set_paid(self, session: SessionContext, tax_id: str, paid: bool) -> Tax:
        """Mark a tax paid (stamping ``paid_at``) or pending again (clearing it)."""
        now = self._clock.now()
        return self.update(session, tax_id, {"paid": paid, "paid_at": now if paid else None})


class VariableExpenseService(EntityService[VariableExpense]):
    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock) -> None:
        super().__init__(VARIABLE_EXPENSES, uow_factory, clock)

    def mark_reimbursed(self, session: SessionContext, expense_id: str) -> VariableExpense:
        require(session, Capability.EDIT)
        with self._uow_factory() as uow:
            current = self._load(uow, expense_id)
        if not current.is_reimbursement:
            raise ValidationError("is_reimbursement", "expense is not a reimbursement")
        return self.update(session, expense_id, {"reimbursement_status": ReimbursementStatus.PAID})


class AdCampaignQuery:
    """Read access to imported campaign lines."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def for_records(self, session: SessionContext, ad_performance_ids: Sequence[str]) -> list[AdCampaign]:
        require(session, Capability.VIEW)
        if not ad_performance_ids:
            return []
        with self._uow_factory() as uow:
            return uow.ad_campaigns.list_for(ad_performance_ids)

    def get(self, session: SessionContext, campaign_id: str) -> Optional[AdCampaign]:
        require(session, Capability.VIEW)
        with self._uow_factory() as uow:
            return uow.ad_campaigns.get(campaign_id)


def _field_names(entity_class: type) -> set[str]:
    return {f.name for f in fields(entity_class)}
