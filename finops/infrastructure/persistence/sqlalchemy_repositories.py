"""SQLAlchemy repository implementations.

Repositories never commit; the unit of work owns the transaction.
Driver errors are logged and re-raised as PersistenceError.
"""

from dataclasses import fields
from datetime import datetime
from enum import Enum
import functools
import time
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finops.application.errors import PersistenceError
from finops.application.ports import (
    LIST_ORDERING,
    AdCampaignRepository,
    AllowedUserRepository,
    DismissedAlertRepository,
    LoginAuditRepository,
    MFAFactorRepository,
    Repository,
    UserAccountRepository,
)
from finops.domain.entities import (
    AdCampaign,
    AllowedUser,
    DismissedAlert,
    LoginAuditEntry,
    MFAFactor,
    UserAccount,
)
from finops.infrastructure.persistence.models import (
    AdCampaignModel,
    AllowedUserModel,
    Base,
    DismissedAlertModel,
    LoginAuditModel,
    MFAFactorModel,
    UserAccountModel,
)
from finops.shared.logging import get_logger
from finops.shared.logging.context import get_correlation_id

E = TypeVar("E")
# Drivers raise OverflowError for integers wider than the column type
DRIVER_ERRORS = (SQLAlchemyError, OverflowError)

F = TypeVar("F", bound=Callable[..., Any])


def translate_errors(query_type: str) -> Callable[[F], F]:
    """
    Log repository queries and turn driver failures into PersistenceError.

    Args:
        query_type: Type of query (select, insert, update, delete)
    """

    def decorator(func_: F) -> F:
        @functools.wraps(func_)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            try:
                result = func_(self, *args, **kwargs)
            except DRIVER_ERRORS as error:
                self._logger.error(
                    "database_query_failed",
                    query_type=query_type,
                    table=self.model.__tablename__,
                    function=func_.__name__,
                    error_type=error.__class__.__name__,
                    duration_ms=(time.time() - start_time) * 1000,
                    correlation_id=get_correlation_id(),
                )
                raise PersistenceError(f"{query_type}:{self.model.__tablename__}") from error

            self._logger.debug(
                "database_query_completed",
                query_type=query_type,
                table=self.model.__tablename__,
                function=func_.__name__,
                duration_ms=(time.time() - start_time) * 1000,
            )
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


def to_row(entity: Any) -> dict[str, Any]:
    """Column values of an entity, enums replaced by their values."""
    values = {}
    for f in fields(entity):
        value = getattr(entity, f.name)
        values[f.name] = value.value if isinstance(value, Enum) else value
    return values


class SqlAlchemyRepository(Repository[E], Generic[E]):
    """Generic repository mapping one entity dataclass to one table."""

    def __init__(self, session: Session, entity: type[E], model: type[Base]) -> None:
        self._session = session
        self.entity = entity
        self.model = model
        self._logger = get_logger(f"infrastructure.repository.{model.__tablename__}")

    def _to_entity(self, row: Base) -> E:
        return self.entity(**{f.name: getattr(row, f.name) for f in fields(self.entity)})

    def _ordered(self, statement):
        column_name, descending = LIST_ORDERING[self.entity]
        column = getattr(self.model, column_name)
        return statement.order_by(column.desc() if descending else column.asc())

    @translate_errors("select")
    def get(self, entity_id: str) -> Optional[E]:
        row = self._session.get(self.model, entity_id)
        return self._to_entity(row) if row is not None else None

    @translate_errors("select")
    def list_all(self, limit: Optional[int] = None) -> list[E]:
        statement = self._ordered(select(self.model))
        if limit is not None:
            statement = statement.limit(limit)
        return [self._to_entity(row) for row in self._session.scalars(statement)]

    @translate_errors("insert")
    def add(self, entity: E) -> E:
        self._session.add(self.model(**to_row(entity)))
        self._session.flush()
        return entity

    @translate_errors("update")
    def update(self, entity: E) -> E:
        self._session.merge(self.model(**to_row(entity)))
        self._session.flush()
        return entity

    @translate_errors("delete")
    def delete(self, entity_id: str) -> None:
        row = self._session.get(self.model, entity_id)
        if row is not None:
            self._session.delete(row)
            self._session.flush()

    def _one(self, statement) -> Optional[E]:
        row = self._session.scalars(statement).first()
        return self._to_entity(row) if row is not None else None


class SqlAlchemyAdCampaignRepository(SqlAlchemyRepository[AdCampaign], AdCampaignRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, AdCampaign, AdCampaignModel)

    @translate_errors("insert")
    def add_many(self, campaigns: Sequence[AdCampaign]) -> list[AdCampaign]:
        self._session.add_all([AdCampaignModel(**to_row(c)) for c in campaigns])
        self._session.flush()
        return list(campaigns)

    @translate_errors("select")
    def list_for(self, ad_performance_ids: Sequence[str]) -> list[AdCampaign]:
        statement = self._ordered(
            select(AdCampaignModel).where(AdCampaignModel.ad_performance_id.in_(list(ad_performance_ids)))
        )
        return [self._to_entity(row) for row in self._session.scalars(statement)]


class SqlAlchemyAllowedUserRepository(SqlAlchemyRepository[AllowedUser], AllowedUserRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, AllowedUser, AllowedUserModel)

    @translate_errors("select")
    def get_by_email(self, email: str) -> Optional[AllowedUser]:
        return self._one(select(AllowedUserModel).where(AllowedUserModel.email == email))


class SqlAlchemyUserAccountRepository(SqlAlchemyRepository[UserAccount], UserAccountRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, UserAccount, UserAccountModel)

    @translate_errors("select")
    def get_by_email(self, email: str) -> Optional[UserAccount]:
        return self._one(select(UserAccountModel).where(UserAccountModel.email == email))


class SqlAlchemyMFAFactorRepository(SqlAlchemyRepository[MFAFactor], MFAFactorRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, MFAFactor, MFAFactorModel)

    @translate_errors("select")
    def list_for_user(self, user_id: str) -> list[MFAFactor]:
        statement = self._ordered(select(MFAFactorModel).where(MFAFactorModel.user_id == user_id))
        return [self._to_entity(row) for row in self._session.scalars(statement)]


class SqlAlchemyLoginAuditRepository(SqlAlchemyRepository[LoginAuditEntry], LoginAuditRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, LoginAuditEntry, LoginAuditModel)

    @translate_errors("select")
    def count_failures_since(self, email: str, since: datetime) -> int:
        statement = (
            select(func.count())
            .select_from(LoginAuditModel)
            .where(
                LoginAuditModel.email == email,
                LoginAuditModel.success.is_(False),
                LoginAuditModel.reason.is_distinct_from("rate_limited"),
                LoginAuditModel.created_at >= since,
            )
        )
        return int(self._session.scalar(statement) or 0)


class SqlAlchemyDismissedAlertRepository(SqlAlchemyRepository[DismissedAlert], DismissedAlertRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, DismissedAlert, DismissedAlertModel)

    @translate_errors("select")
    def get_by_key(self, alert_key: str) -> Optional[DismissedAlert]:
        return self._one(select(DismissedAlertModel).where(DismissedAlertModel.alert_key == alert_key))
