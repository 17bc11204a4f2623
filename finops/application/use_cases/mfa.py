"""TOTP factor enrollment and management."""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from finops.application.errors import AuthenticationError, NotFoundError
from finops.application.ports import TotpVerifier, UnitOfWork
from finops.domain.entities import MFAFactor, MFAFactorStatus
from finops.domain.session import SessionContext
from finops.shared.logging import SecurityEventType, SecurityLogger, get_logger


@dataclass(frozen=True)
class Enrollment:
    factor_id: str
    secret: str
    provisioning_uri: str


class MFAService:
    """
    Manage the caller's own TOTP factors.

    Enrollment creates an unverified factor; it only guards sign-in after a
    first code has been verified against it.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork], totp: TotpVerifier, issuer: str) -> None:
        self._uow_factory = uow_factory
        self._totp = totp
        self._issuer = issuer
        self._logger = get_logger("application.mfa")
        self._security = SecurityLogger("application.mfa")

    def enroll(self, session: SessionContext, friendly_name: Optional[str] = None) -> Enrollment:
        secret = self._totp.generate_secret()
        factor = MFAFactor(user_id=session.user_id, secret=secret, friendly_name=friendly_name)
        with self._uow_factory() as uow:
            uow.mfa_factors.add(factor)

        self._logger.info("mfa_enrollment_started", factor_id=factor.id)
        return Enrollment(
            factor_id=factor.id,
            secret=secret,
            provisioning_uri=self._totp.provisioning_uri(secret, session.email, self._issuer),
        )

    def verify_enrollment(self, session: SessionContext, factor_id: str, code: str) -> MFAFactor:
        """
        Confirm a factor with its first code.

        Raises:
            NotFoundError: Factor does not belong to the caller
            AuthenticationError: Code does not match
        """
        with self._uow_factory() as uow:
            factor = self._own_factor(uow, session, factor_id)
            if not self._totp.verify(factor.secret, code):
                self._security.log_security_event(
                    SecurityEventType.MFA_FAILED,
                    "MFA enrollment code rejected",
                    factor_id=factor_id,
                )
                raise AuthenticationError("mfa_failed", "Invalid MFA code")
            verified = replace(factor, status=MFAFactorStatus.VERIFIED)
            uow.mfa_factors.update(verified)

        self._logger.info("mfa_enrollment_verified", factor_id=factor_id)
        return verified

    def list_factors(self, session: SessionContext) -> list[MFAFactor]:
        with self._uow_factory() as uow:
            return uow.mfa_factors.list_for_user(session.user_id)

    def unenroll(self, session: SessionContext, factor_id: str) -> None:
        with self._uow_factory() as uow:
            self._own_factor(uow, session, factor_id)
            uow.mfa_factors.delete(factor_id)

        self._logger.info("mfa_factor_removed", factor_id=factor_id)

    @staticmethod
    def _own_factor(uow: UnitOfWork, session: SessionContext, factor_id: str) -> MFAFactor:
        factor = uow.mfa_factors.get(factor_id)
        if factor is None or factor.user_id != session.user_id:
            raise NotFoundError("mfa_factor", factor_id)
        return factor
