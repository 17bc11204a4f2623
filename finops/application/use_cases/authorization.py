"""Server-side authorization gate run on every protected request."""

from typing import Callable

from finops.application.errors import AuthenticationError, AuthorizationError, MFARequiredError
from finops.application.ports import TokenClaims, TokenService, UnitOfWork
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import SecurityEventType, SecurityLogger, get_logger

ACCESS_REVOKED_MESSAGE = "Access revoked. Sign in again"


class AuthorizationGate:
    """
    Turn a bearer token into a SessionContext.

    The role always comes from the current whitelist entry, never from the
    token, so role changes and removals apply on the next request.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork], token_service: TokenService) -> None:
        self._uow_factory = uow_factory
        self._tokens = token_service
        self._logger = get_logger("application.authorization")
        self._security = SecurityLogger("application.authorization")

    def authenticate(self, token: str) -> tuple[TokenClaims, SessionContext]:
        """
        Validate the token and resolve the caller's session.

        Raises:
            AuthenticationError: Invalid token, or caller no longer whitelisted
            MFARequiredError: Token still waits for the TOTP challenge
        """
        claims = self._tokens.verify(token)
        if claims.mfa_pending:
            raise MFARequiredError()

        with self._uow_factory() as uow:
            entry = uow.allowed_users.get_by_email(claims.email)
            account = uow.user_accounts.get(claims.user_id)

        if entry is None or not entry.active or account is None:
            self._tokens.revoke(claims.token_id)
            self._security.log_security_event(
                SecurityEventType.ACCESS_REVOKED,
                "Whitelist entry missing or inactive, session ended",
                user_id=claims.user_id,
            )
            raise AuthenticationError("access_revoked", ACCESS_REVOKED_MESSAGE)

        session = SessionContext(
            user_id=claims.user_id,
            email=claims.email,
            role=entry.role,
            display_name=account.name,
            mfa_verified=claims.aal == "aal2",
            token_id=claims.token_id,
        )
        return claims, session

    def authorize(self, token: str, capability: Capability) -> SessionContext:
        """Authenticate and require ``capability``; 403 when it is missing."""
        _, session = self.authenticate(token)
        if not session.has(capability):
            self._security.permission_denied(capability.value, role=session.role.value)
            raise AuthorizationError(capability.value)
        self._logger.debug("request_authorized", capability=capability.value, role=session.role.value)
        return session
