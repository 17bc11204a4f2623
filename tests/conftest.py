"""Test configuration and shared fixtures."""

from datetime import timedelta
from typing import Callable, Optional

import pytest

from finops.application.config import Config
from finops.application.ports import UnitOfWork
from finops.domain.entities import AllowedUser, UserAccount
from finops.domain.session import AppRole, SessionContext
from finops.infrastructure.bootstrap import Container, build_container
from finops.infrastructure.persistence import InMemoryStore, InMemoryUnitOfWork
from finops.infrastructure.secrets import EnvironmentSecretsManager
from tests.fakes import TEST_PASSWORD, FakePasswordHasher, FakeTokenService, FakeTotp, FixedClock


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at 2026-03-15 12:00 UTC."""
    return FixedClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def uow_factory(store) -> Callable[[], UnitOfWork]:
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def tokens() -> FakeTokenService:
    return FakeTokenService()


@pytest.fixture
def password_hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def totp() -> FakeTotp:
    return FakeTotp()


@pytest.fixture
def config() -> Config:
    """Test configuration read from an isolated environment mapping."""
    return Config(EnvironmentSecretsManager(environ={"ENVIRONMENT": "test"}))


@pytest.fixture
def container(config, uow_factory, clock, tokens, password_hasher, totp) -> Container:
    return build_container(
        config,
        uow_factory,
        clock=clock,
        tokens=tokens,
        password_hasher=password_hasher,
        totp=totp,
    )


@pytest.fixture
def seed_user(store, password_hasher, clock):
    """Whitelist an e-mail and (optionally) create its account."""

    def _seed(
        email: str,
        role: AppRole = AppRole.VIEWER,
        password: Optional[str] = TEST_PASSWORD,
        name: str = "Test User",
        active: bool = True,
    ) -> tuple[AllowedUser, Optional[UserAccount]]:
        entry = AllowedUser(email=email, role=role, active=active, created_at=clock.now() - timedelta(days=1))
        store.tables["allowed_users"][entry.id] = entry
        account = None
        if password is not None:
            account = UserAccount(email=email, name=name, password_hash=password_hasher.hash(password))
            store.tables["user_accounts"][account.id] = account
        return entry, account

    return _seed


def _session(role: AppRole, user_id: str, email: str, name: str) -> SessionContext:
    return SessionContext(user_id=user_id, email=email, role=role, display_name=name)


@pytest.fixture
def admin_session() -> SessionContext:
    return _session(AppRole.ADMIN, "user-admin", "admin@example.com", "Ana Admin")


@pytest.fixture
def manager_session() -> SessionContext:
    return _session(AppRole.MANAGER, "user-manager", "manager@example.com", "Marcos Manager")


@pytest.fixture
def viewer_session() -> SessionContext:
    return _session(AppRole.VIEWER, "user-viewer", "viewer@example.com", "Vera Viewer")
