"""Persistence adapters: SQLAlchemy for deployments, in-memory for development and tests."""

from finops.infrastructure.persistence.memory import InMemoryStore, InMemoryUnitOfWork
from finops.infrastructure.persistence.sqlalchemy_uow import (
    SqlAlchemyUnitOfWork,
    create_db_engine,
    create_schema,
    create_session_factory,
)

__all__ = [
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "SqlAlchemyUnitOfWork",
    "create_db_engine",
    "create_schema",
    "create_session_factory",
]
