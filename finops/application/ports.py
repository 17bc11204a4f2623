"""Application ports (interfaces) for FinOps.

Use cases depend on these abstractions only; infrastructure provides the
SQLAlchemy, in-memory, JWT, bcrypt and TOTP implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType
from typing import Generic, Optional, Sequence, TypeVar

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

T = TypeVar("T")

# (field, descending) used by every adapter when listing
LIST_ORDERING: dict[type, tuple[str, bool]] = {
    Platform: ("created_at", True),
    Tool: ("due_date", False),
    Collaborator: ("name", False),
    AdPerformance: ("date", True),
    AdCampaign: ("spend", True),
    Withdrawal: ("date", True),
    Tax: ("due_date", True),
    VariableExpense: ("date", True),
    AllowedUser: ("created_at", True),
    AuditLogEntry: ("created_at", True),
    LoginAuditEntry: ("created_at", True),
    DismissedAlert: ("dismissed_at", True),
    UserAccount: ("created_at", False),
    MFAFactor: ("created_at", False),
}


class Repository(ABC, Generic[T]):
    """Port for persistence of one record type."""

    @abstractmethod
    def get(self, entity_id: str) -> Optional[T]:
        """Return the record or None."""

    @abstractmethod
    def list_all(self, limit: Optional[int] = None) -> list[T]:
        """Return records in the type's list order."""

    @abstractmethod
    def add(self, entity: T) -> T:
        """Insert a new record."""

    @abstractmethod
    def update(self, entity: T) -> T:
        """Replace the stored record with the same id."""

    @abstractmethod
    def delete(self, entity_id: str) -> None:
        """Remove a record; unknown ids are ignored."""


class AdCampaignRepository(Repository[AdCampaign]):
    @abstractmethod
    def add_many(self, campaigns: Sequence[AdCampaign]) -> list[AdCampaign]:
        """Bulk insert campaigns."""

    @abstractmethod
    def list_for(self, ad_performance_ids: Sequence[str]) -> list[AdCampaign]:
        """Campaigns of the given parent records, highest spend first."""


class AllowedUserRepository(Repository[AllowedUser]):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[AllowedUser]:
        """Lookup by normalized e-mail."""


class UserAccountRepository(Repository[UserAccount]):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[UserAccount]:
        """Lookup by normalized e-mail."""


class MFAFactorRepository(Repository[MFAFactor]):
    @abstractmethod
    def list_for_user(self, user_id: str) -> list[MFAFactor]:
        """Factors of one user, oldest first."""


class LoginAuditRepository(Repository[LoginAuditEntry]):
    @abstractmethod
    def count_failures_since(self, email: str, since: datetime) -> int:
        """Failed attempts for an e-mail at or after ``since``."""


class DismissedAlertRepository(Repository[DismissedAlert]):
    @abstractmethod
    def get_by_key(self, alert_key: str) -> Optional[DismissedAlert]:
        """Lookup by alert key."""


class UnitOfWork(ABC):
    """
    Port for one atomic batch of writes.

    Used as a context manager: leaving the block normally commits, leaving
    it with an exception rolls everything back.
    """

    platforms: Repository[Platform]
    tools: Repository[Tool]
    collaborators: Repository[Collaborator]
    ad_performance: Repository[AdPerformance]
    ad_campaigns: AdCampaignRepository
    withdrawals: Repository[Withdrawal]
    taxes: Repository[Tax]
    variable_expenses: Repository[VariableExpense]
    allowed_users: AllowedUserRepository
    audit_logs: Repository[AuditLogEntry]
    login_audit: LoginAuditRepository
    dismissed_alerts: DismissedAlertRepository
    user_accounts: UserAccountRepository
    mfa_factors: MFAFactorRepository

    def __enter__(self) -> "UnitOfWork":
        self._begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self._end()

    @abstractmethod
    def _begin(self) -> None:
        """Open the transaction and bind repositories."""

    @abstractmethod
    def _end(self) -> None:
        """Release resources held by the transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Persist all pending changes."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard all pending changes."""


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    token_id: str
    mfa_pending: bool
    aal: str
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    token_id: str
    expires_in: int


class TokenService(ABC):
    """Port for issuing and validating bearer tokens."""

    @abstractmethod
    def issue(
        self,
        user_id: str,
        email: str,
        mfa_pending: bool = False,
        mfa_verified: bool = False,
    ) -> IssuedToken:
        """
        Issue a token.

        MFA-pending tokens only unlock the TOTP challenge; ``mfa_verified``
        marks a token obtained through that challenge (aal2).
        """

    @abstractmethod
    def verify(self, token: str) -> TokenClaims:
        """
        Validate a token.

        Raises:
            AuthenticationError: If the token is invalid, expired or revoked
        """

    @abstractmethod
    def revoke(self, token_id: str) -> None:
        """Revoke a token by its id."""


class PasswordHasher(ABC):
    @abstractmethod
    def hash(self, password: str) -> str:
        """Hash a password for storage."""

    @abstractmethod
    def verify(self, password: str, hashed: str) -> bool:
        """Constant-time comparison of a password with a stored hash."""


class TotpVerifier(ABC):
    """Port for time-based one-time passwords."""

    @abstractmethod
    def generate_secret(self) -> str:
        """New base32 secret."""

    @abstractmethod
    def provisioning_uri(self, secret: str, account: str, issuer: str) -> str:
        """otpauth:// URI for authenticator apps."""

    @abstractmethod
    def verify(self, secret: str, code: str) -> bool:
        """Check a code against the secret, tolerating small clock drift."""


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current UTC time."""


class SecretsManager(ABC):
    """Port for secure secrets and configuration management."""

    @abstractmethod
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get secret value by key.

        Args:
            key: Secret key name
            default: Default value if key not found

        Returns:
            Secret value or default
        """

    @abstractmethod
    def get_database_url(self) -> str:
        """Get database connection URL."""

    @abstractmethod
    def get_jwt_keys(self) -> tuple[str, str]:
        """
        Get JWT public and private keys.

        Returns:
            Tuple of (public_key, private_key); empty strings when unset
        """

    @abstractmethod
    def refresh_cache(self) -> None:
        """Refresh cached configuration values."""
