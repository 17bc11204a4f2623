"""In-memory persistence for development and tests.

All units of work created from the same ``InMemoryStore`` share its data.
Rolling back restores the tables as they were when the block started.
"""

from datetime import datetime
import threading
from typing import Any, Generic, Optional, Sequence, TypeVar

from finops.application.ports import (
    LIST_ORDERING,
    AdCampaignRepository,
    AllowedUserRepository,
    DismissedAlertRepository,
    LoginAuditRepository,
    MFAFactorRepository,
    Repository,
    UnitOfWork,
    UserAccountRepository,
)
from finops.domain.entities import (
    AdCampaign,
    AdPerformance,
    AllowedUser,
    AuditLogEntry,
    Collaborator,
    DismissedAlert,
    LoginAuditEntry,
    MFAFactor,
    Platform,
    Tax,
    Tool,
    UserAccount,
    VariableExpense,
    Withdrawal,
)
from finops.shared.logging import get_logger

E = TypeVar("E")

TABLES: dict[str, type] = {
    "platforms": Platform,
    "tools": Tool,
    "collaborators": Collaborator,
    "ad_performance": AdPerformance,
    "ad_campaigns": AdCampaign,
    "withdrawals": Withdrawal,
    "taxes": Tax,
    "variable_expenses": VariableExpense,
    "allowed_users": AllowedUser,
    "audit_logs": AuditLogEntry,
    "login_audit": LoginAuditEntry,
    "dismissed_alerts": DismissedAlert,
    "user_accounts": UserAccount,
    "mfa_factors": MFAFactor,
}

# Child tables removed with their parent, mirroring ON DELETE CASCADE
CASCADES: dict[str, tuple[tuple[str, str], ...]] = {
    "ad_performance": (("ad_campaigns", "ad_performance_id"),),
    "user_accounts": (("mfa_factors", "user_id"),),
}


class InMemoryStore:
    """Tables keyed by name, each a dict of id -> entity."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, Any]] = {name: {} for name in TABLES}
        self.lock = threading.RLock()

    def snapshot(self) -> dict[str, dict[str, Any]]:
        # Entities are frozen, a shallow copy per table is enough
        return {name: dict(rows) for name, rows in self.tables.items()}

    def restore(self, snapshot: dict[str, dict[str, Any]]) -> None:
        for name, rows in snapshot.items():
            self.tables[name].clear()
            self.tables[name].update(rows)


def _sort_key(value: Any) -> tuple:
    # None sorts first ascending, last descending
    if value is None:
        return (0, "")
    if isinstance(value, datetime) and value.tzinfo is not None:
        value = value.replace(tzinfo=None) - value.utcoffset()
    return (1, value)


class InMemoryRepository(Repository[E], Generic[E]):
    def __init__(
        self,
        rows: dict[str, E],
        entity: type[E],
        children: Sequence[tuple[dict[str, Any], str]] = (),
    ) -> None:
        self._rows = rows
        self.entity = entity
        self._children = children

    def get(self, entity_id: str) -> Optional[E]:
        return self._rows.get(entity_id)

    def list_all(self, limit: Optional[int] = None) -> list[E]:
        return self._sorted(self._rows.values())[:limit]

    def add(self, entity: E) -> E:
        if entity.id in self._rows:
            raise ValueError(f"duplicate id {entity.id}")
        self._rows[entity.id] = entity
        return entity

    def update(self, entity: E) -> E:
        self._rows[entity.id] = entity
        return entity

    def delete(self, entity_id: str) -> None:
        if self._rows.pop(entity_id, None) is None:
            return
        for child_rows, parent_field in self._children:
            orphans = [key for key, child in child_rows.items() if getattr(child, parent_field) == entity_id]
            for key in orphans:
                del child_rows[key]

    def _sorted(self, entities) -> list[E]:
        field_name, descending = LIST_ORDERING[self.entity]
        return sorted(entities, key=lambda e: _sort_key(getattr(e, field_name)), reverse=descending)


class InMemoryAdCampaignRepository(InMemoryRepository[AdCampaign], AdCampaignRepository):
    def add_many(self, campaigns: Sequence[AdCampaign]) -> list[AdCampaign]:
        return [self.add(c) for c in campaigns]

    def list_for(self, ad_performance_ids: Sequence[str]) -> list[AdCampaign]:
        wanted = set(ad_performance_ids)
        return self._sorted(c for c in self._rows.values() if c.ad_performance_id in wanted)


class InMemoryAllowedUserRepository(InMemoryRepository[AllowedUser], AllowedUserRepository):
    def get_by_email(self, email: str) -> Optional[AllowedUser]:
        return next((u for u in self._rows.values() if u.email == email), None)


class InMemoryUserAccountRepository(InMemoryRepository[UserAccount], UserAccountRepository):
    def get_by_email(self, email: str) -> Optional[UserAccount]:
        return next((u for u in self._rows.values() if u.email == email), None)


class InMemoryMFAFactorRepository(InMemoryRepository[MFAFactor], MFAFactorRepository):
    def list_for_user(self, user_id: str) -> list[MFAFactor]:
        return self._sorted(f for f in self._rows.values() if f.user_id == user_id)


class InMemoryLoginAuditRepository(InMemoryRepository[LoginAuditEntry], LoginAuditRepository):
    def count_failures_since(self, email: str, since: datetime) -> int:
        return sum(
            1
            for entry in self._rows.values()
            if entry.email == email
            and not entry.success
            and entry.reason != "rate_limited"
            and entry.created_at >= since
        )


class InMemoryDismissedAlertRepository(InMemoryRepository[DismissedAlert], DismissedAlertRepository):
    def get_by_key(self, alert_key: str) -> Optional[DismissedAlert]:
        return next((a for a in self._rows.values() if a.alert_key == alert_key), None)


_REPOSITORY_CLASSES: dict[str, type[InMemoryRepository]] = {
    "ad_campaigns": InMemoryAdCampaignRepository,
    "allowed_users": InMemoryAllowedUserRepository,
    "user_accounts": InMemoryUserAccountRepository,
    "mfa_factors": InMemoryMFAFactorRepository,
    "login_audit": InMemoryLoginAuditRepository,
    "dismissed_alerts": InMemoryDismissedAlertRepository,
}


class InMemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._snapshot: Optional[dict[str, dict[str, Any]]] = None
        self._logger = get_logger("infrastructure.persistence.memory")

    def _begin(self) -> None:
        self._store.lock.acquire()
        self._snapshot = self._store.snapshot()
        for name, entity in TABLES.items():
            repository_class = _REPOSITORY_CLASSES.get(name, InMemoryRepository)
            children = [(self._store.tables[child], field) for child, field in CASCADES.get(name, ())]
            setattr(self, name, repository_class(self._store.tables[name], entity, children))

    def _end(self) -> None:
        self._snapshot = None
        self._store.lock.release()

    def commit(self) -> None:
        self._snapshot = self._store.snapshot()

    def rollback(self) -> None:
        if self._snapshot is not None:
            self._store.restore(self._snapshot)
            self._logger.debug("transaction_rolled_back")
