"""SQLAlchemy engine setup and unit of work."""

from typing import Callable, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from finops.application.errors import PersistenceError
from finops.application.ports import UnitOfWork
from finops.domain.entities import (
    AdPerformance,
    AuditLogEntry,
    Collaborator,
    Platform,
    Tax,
    Tool,
    VariableExpense,
    Withdrawal,
)
from finops.infrastructure.persistence.models import (
    AdPerformanceModel,
    AuditLogModel,
    Base,
    CollaboratorModel,
    PlatformModel,
    TaxModel,
    ToolModel,
    VariableExpenseModel,
    WithdrawalModel,
)
from finops.infrastructure.persistence.sqlalchemy_repositories import (
    DRIVER_ERRORS,
    SqlAlchemyAdCampaignRepository,
    SqlAlchemyAllowedUserRepository,
    SqlAlchemyDismissedAlertRepository,
    SqlAlchemyLoginAuditRepository,
    SqlAlchemyMFAFactorRepository,
    SqlAlchemyRepository,
    SqlAlchemyUserAccountRepository,
)
from finops.shared.logging import get_logger

logger = get_logger("infrastructure.persistence")


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine for ``database_url``.

    In-memory SQLite shares one connection so every session sees the same
    database; SQLite also gets foreign keys switched on.
    """
    options: dict = {"echo": echo, "future": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True

    engine = create_engine(database_url, **options)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.info("database_engine_created", dialect=engine.dialect.name)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def create_schema(engine: Engine) -> None:
    """Create every table; development and tests only, production uses migrations."""
    Base.metadata.create_all(engine)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """One database transaction per ``with`` block."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._session: Optional[Session] = None

    def _begin(self) -> None:
        session = self._session_factory()
        self._session = session

        self.platforms = SqlAlchemyRepository(session, Platform, PlatformModel)
        self.tools = SqlAlchemyRepository(session, Tool, ToolModel)
        self.collaborators = SqlAlchemyRepository(session, Collaborator, CollaboratorModel)
        self.ad_performance = SqlAlchemyRepository(session, AdPerformance, AdPerformanceModel)
        self.ad_campaigns = SqlAlchemyAdCampaignRepository(session)
        self.withdrawals = SqlAlchemyRepository(session, Withdrawal, WithdrawalModel)
        self.taxes = SqlAlchemyRepository(session, Tax, TaxModel)
        self.variable_expenses = SqlAlchemyRepository(session, VariableExpense, VariableExpenseModel)
        self.allowed_users = SqlAlchemyAllowedUserRepository(session)
        self.audit_logs = SqlAlchemyRepository(session, AuditLogEntry, AuditLogModel)
        self.login_audit = SqlAlchemyLoginAuditRepository(session)
        self.dismissed_alerts = SqlAlchemyDismissedAlertRepository(session)
        self.user_accounts = SqlAlchemyUserAccountRepository(session)
        self.mfa_factors = SqlAlchemyMFAFactorRepository(session)

    def _end(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def commit(self) -> None:
        try:
            self._session.commit()
        except DRIVER_ERRORS as error:
            self._session.rollback()
            logger.error("transaction_commit_failed", error_type=error.__class__.__name__)
            raise PersistenceError("commit") from error

    def rollback(self) -> None:
        self._session.rollback()
        logger.debug("transaction_rolled_back")
