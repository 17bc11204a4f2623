"""Sign-in, MFA challenge and sign-out."""

from dataclasses import dataclass
from datetime import timedelta
import time
from typing import Callable, Optional

from finops.application.errors import (
    AuthenticationError,
    ConflictError,
    RateLimitExceeded,
    ValidationError,
)
from finops.application.ports import (
    Clock,
    PasswordHasher,
    TokenClaims,
    TokenService,
    TotpVerifier,
    UnitOfWork,
)
from finops.domain.entities import AllowedUser, LoginAuditEntry, UserAccount
from finops.domain.errors import InvalidValueObjectError
from finops.domain.session import AppRole, normalize_email
from finops.shared.logging import (
    AuditEventType,
    AuditLogger,
    SecurityEventType,
    SecurityLogger,
    get_logger,
)

RESTRICTED_ACCESS_MESSAGE = "Access restricted. Ask an administrator to grant access"
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"

# Login audit reasons
REASON_RATE_LIMITED = "rate_limited"
REASON_NOT_WHITELISTED = "not_whitelisted"
REASON_AUTH_FAILED = "auth_failed"
REASON_NOT_WHITELISTED_POST_AUTH = "not_whitelisted_post_auth"
REASON_MFA_FAILED = "mfa_failed"
REASON_SUCCESS = "success"
REASON_SUCCESS_MFA = "success_mfa"


@dataclass(frozen=True)
class SignInRequest:
    email: str
    password: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class SignInResult:
    """Either a full access token or an MFA-pending one."""

    access_token: str
    expires_in: int
    requires_mfa: bool
    user_id: str
    email: str
    role: AppRole
    name: Optional[str] = None
    token_type: str = "bearer"


@dataclass(frozen=True)
class LoginThrottle:
    """Failed-attempt window; rate-limited entries do not extend it."""

    max_attempts: int = 5
    window_seconds: int = 600


class _LoginAuditWriter:
    """Writes one login audit row in its own unit of work so it survives failures."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def write(
        self,
        email: str,
        success: bool,
        reason: str,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> None:
        with self._uow_factory() as uow:
            uow.login_audit.add(
                LoginAuditEntry(
                    email=email,
                    success=success,
                    reason=reason,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    created_at=self._clock.now(),
                )
            )


def _active_whitelist_entry(uow: UnitOfWork, email: str) -> Optional[AllowedUser]:
    entry = uow.allowed_users.get_by_email(email)
    if entry is None or not entry.active:
        return None
    return entry


class SignInUseCase:
    """
    Password sign-in guarded by the whitelist.

    Order: throttle, whitelist, credentials, whitelist again, then either an
    MFA-pending token (verified TOTP factor present) or a full token.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        password_hasher: PasswordHasher,
        token_service: TokenService,
        clock: Clock,
        throttle: LoginThrottle = LoginThrottle(),
    ) -> None:
        self._uow_factory = uow_factory
        self._hasher = password_hasher
        self._tokens = token_service
        self._clock = clock
        self._throttle = throttle
        self._login_audit = _LoginAuditWriter(uow_factory, clock)
        self._logger = get_logger("application.sign_in")
        self._security = SecurityLogger("application.sign_in")
        self._audit = AuditLogger("application.sign_in")

    def execute(self, request: SignInRequest) -> SignInResult:
        """
        Authenticate a user.

        Raises:
            RateLimitExceeded: Too many failures inside the window
            AuthenticationError: Not whitelisted or wrong credentials
        """
        start = time.time()
        email = self._normalize(request.email)

        def reject(reason: str, message: str) -> AuthenticationError:
            self._login_audit.write(email, False, reason, request.ip_address, request.user_agent)
            self._security.auth_failed(reason, email=email, ip_address=request.ip_address)
            return AuthenticationError(reason, message)

        if self._is_throttled(email):
            self._login_audit.write(
                email, False, REASON_RATE_LIMITED, request.ip_address, request.user_agent
            )
            self._security.rate_limit_exceeded(
                "sign_in",
                limit=self._throttle.max_attempts,
                window=f"{self._throttle.window_seconds}s",
                email=email,
            )
            raise RateLimitExceeded("sign_in", retry_after=self._throttle.window_seconds)

        with self._uow_factory() as uow:
            whitelisted = _active_whitelist_entry(uow, email) is not None
        if not whitelisted:
            raise reject(REASON_NOT_WHITELISTED, RESTRICTED_ACCESS_MESSAGE)

        with self._uow_factory() as uow:
            account = uow.user_accounts.get_by_email(email)
        if account is None or not self._hasher.verify(request.password, account.password_hash):
            raise reject(REASON_AUTH_FAILED, INVALID_CREDENTIALS_MESSAGE)

        with self._uow_factory() as uow:
            entry = _active_whitelist_entry(uow, email)
            has_mfa = any(f.verified for f in uow.mfa_factors.list_for_user(account.id))
        if entry is None:
            raise reject(REASON_NOT_WHITELISTED_POST_AUTH, RESTRICTED_ACCESS_MESSAGE)

        if has_mfa:
            issued = self._tokens.issue(account.id, email, mfa_pending=True)
            self._logger.info("sign_in_mfa_required", user_id=account.id)
            return self._result(issued.access_token, issued.expires_in, True, account, entry.role)

        issued = self._tokens.issue(account.id, email)
        self._login_audit.write(email, True, REASON_SUCCESS, request.ip_address, request.user_agent)
        self._audit.log_audit_event(
            AuditEventType.USER_LOGIN,
            entity_type="session",
            entity_id=issued.token_id,
            action="sign_in",
            actor_id=account.id,
        )
        self._logger.info(
            "sign_in_succeeded",
            user_id=account.id,
            role=entry.role.value,
            duration_ms=(time.time() - start) * 1000,
        )
        return self._result(issued.access_token, issued.expires_in, False, account, entry.role)

    def _normalize(self, email: str) -> str:
        try:
            return normalize_email(email)
        except InvalidValueObjectError as error:
            raise ValidationError("email", "invalid e-mail address") from error

    def _is_throttled(self, email: str) -> bool:
        since = self._clock.now() - timedelta(seconds=self._throttle.window_seconds)
        with self._uow_factory() as uow:
            failures = uow.login_audit.count_failures_since(email, since)
        return failures >= self._throttle.max_attempts

    @staticmethod
    def _result(
        token: str,
        expires_in: int,
        requires_mfa: bool,
        account: UserAccount,
        role: AppRole,
    ) -> SignInResult:
        return SignInResult(
            access_token=token,
            expires_in=expires_in,
            requires_mfa=requires_mfa,
            user_id=account.id,
            email=account.email,
            role=role,
            name=account.name,
        )


class CompleteMFAChallengeUseCase:
    """Exchange an MFA-pending token plus a TOTP code for a full token."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        token_service: TokenService,
        totp: TotpVerifier,
        clock: Clock,
        throttle: LoginThrottle = LoginThrottle(),
    ) -> None:
        self._uow_factory = uow_factory
        self._tokens = token_service
        self._totp = totp
        self._clock = clock
        self._throttle = throttle
        self._login_audit = _LoginAuditWriter(uow_factory, clock)
        self._logger = get_logger("application.mfa_challenge")
        self._security = SecurityLogger("application.mfa_challenge")
        self._audit = AuditLogger("application.mfa_challenge")

    def execute(
        self,
        pending_token: str,
        code: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SignInResult:
        claims = self._tokens.verify(pending_token)
        if not claims.mfa_pending:
            raise AuthenticationError("mfa_not_pending", "Token is not waiting for MFA")

        since = self._clock.now() - timedelta(seconds=self._throttle.window_seconds)
        with self._uow_factory() as uow:
            throttled = (
                uow.login_audit.count_failures_since(claims.email, since)
                >= self._throttle.max_attempts
            )
            account = uow.user_accounts.get(claims.user_id)
            entry = _active_whitelist_entry(uow, claims.email)
            factors = [f for f in uow.mfa_factors.list_for_user(claims.user_id) if f.verified]

        if throttled:
            self._tokens.revoke(claims.token_id)
            raise RateLimitExceeded("mfa_challenge", retry_after=self._throttle.window_seconds)

        if account is None or entry is None:
            self._tokens.revoke(claims.token_id)
            self._login_audit.write(
                claims.email, False, REASON_NOT_WHITELISTED_POST_AUTH, ip_address, user_agent
            )
            raise AuthenticationError(REASON_NOT_WHITELISTED_POST_AUTH, RESTRICTED_ACCESS_MESSAGE)

        if not factors:
            raise AuthenticationError("mfa_not_enrolled", "No MFA factor found")

        if not any(self._totp.verify(f.secret, code) for f in factors):
            self._login_audit.write(claims.email, False, REASON_MFA_FAILED, ip_address, user_agent)
            self._security.log_security_event(
                SecurityEventType.MFA_FAILED,
                "MFA verification failed",
                user_id=claims.user_id,
            )
            raise AuthenticationError(REASON_MFA_FAILED, "Invalid MFA code")

        self._tokens.revoke(claims.token_id)
        issued = self._tokens.issue(account.id, account.email, mfa_verified=True)
        self._login_audit.write(account.email, True, REASON_SUCCESS_MFA, ip_address, user_agent)
        self._audit.log_audit_event(
            AuditEventType.USER_LOGIN,
            entity_type="session",
            entity_id=issued.token_id,
            action="sign_in_mfa",
            actor_id=account.id,
        )
        self._logger.info("mfa_challenge_succeeded", user_id=account.id)

        return SignInResult(
            access_token=issued.access_token,
            expires_in=issued.expires_in,
            requires_mfa=False,
            user_id=account.id,
            email=account.email,
            role=entry.role,
            name=account.name,
        )


class SignOutUseCase:
    """Revoke the caller's token."""

    def __init__(self, token_service: TokenService) -> None:
        self._tokens = token_service
        self._audit = AuditLogger("application.sign_out")

    def execute(self, claims: TokenClaims) -> None:
        self._tokens.revoke(claims.token_id)
        self._audit.log_audit_event(
            AuditEventType.USER_LOGOUT,
            entity_type="session",
            entity_id=claims.token_id,
            action="sign_out",
            actor_id=claims.user_id,
        )


@dataclass(frozen=True)
class RegisterAccountRequest:
    email: str
    name: str
    password: str


class RegisterAccountUseCase:
    """Create credentials for an e-mail that is already whitelisted."""

    MIN_PASSWORD_LENGTH = 8

    def __init__(self, uow_factory: Callable[[], UnitOfWork], password_hasher: PasswordHasher) -> None:
        self._uow_factory = uow_factory
        self._hasher = password_hasher
        self._logger = get_logger("application.register_account")

    def execute(self, request: RegisterAccountRequest) -> UserAccount:
        try:
            email = normalize_email(request.email)
        except InvalidValueObjectError as error:
            raise ValidationError("email", "invalid e-mail address") from error

        if len(request.password) < self.MIN_PASSWORD_LENGTH:
            raise ValidationError("password", f"must have at least {self.MIN_PASSWORD_LENGTH} characters")

        with self._uow_factory() as uow:
            if _active_whitelist_entry(uow, email) is None:
                raise AuthenticationError(REASON_NOT_WHITELISTED, RESTRICTED_ACCESS_MESSAGE)
            if uow.user_accounts.get_by_email(email) is not None:
                raise ConflictError("An account already exists for this e-mail")

            account = UserAccount(
                email=email,
                name=request.name.strip() or email,
                password_hash=self._hasher.hash(request.password),
            )
            uow.user_accounts.add(account)

        self._logger.info("account_registered", user_id=account.id)
        return account
