"""Fake implementations for testing."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import itertools
from typing import Sequence

from finops.application.errors import AuthenticationError, PersistenceError
from finops.application.ports import (
    Clock,
    IssuedToken,
    PasswordHasher,
    TokenClaims,
    TokenService,
    TotpVerifier,
)
from finops.domain.entities import AdCampaign
from finops.infrastructure.persistence.memory import InMemoryAdCampaignRepository, InMemoryUnitOfWork

TEST_PASSWORD = "correct-horse-battery"
VALID_TOTP_CODE = "123456"


@dataclass
class FixedClock(Clock):
    """Clock frozen at ``current`` until advanced."""

    current: datetime = field(default_factory=lambda: datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current = self.current + timedelta(seconds=seconds)


class FakePasswordHasher(PasswordHasher):
    """Reversible 'hash' so tests can build accounts cheaply."""

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        return hashed == f"hashed:{password}"


@dataclass
class FakeTokenService(TokenService):
    """Opaque tokens kept in a dict; records what was issued and revoked."""

    ttl_seconds: int = 3600
    issued: list[TokenClaims] = field(default_factory=list)
    revoked: set[str] = field(default_factory=set)
    _tokens: dict[str, TokenClaims] = field(default_factory=dict)
    _counter: itertools.count = field(default_factory=lambda: itertools.count(1))

    def issue(
        self,
        user_id: str,
        email: str,
        mfa_pending: bool = False,
        mfa_verified: bool = False,
    ) -> IssuedToken:
        number = next(self._counter)
        claims = TokenClaims(
            user_id=user_id,
            email=email,
            token_id=f"jti-{number}",
            mfa_pending=mfa_pending,
            aal="aal2" if mfa_verified else "aal1",
            expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        token = f"token-{number}"
        self._tokens[token] = claims
        self.issued.append(claims)
        ttl = 300 if mfa_pending else self.ttl_seconds
        return IssuedToken(access_token=token, token_id=claims.token_id, expires_in=ttl)

    def verify(self, token: str) -> TokenClaims:
        claims = self._tokens.get(token)
        if claims is None:
            raise AuthenticationError("token_invalid", "Invalid token")
        if claims.token_id in self.revoked:
            raise AuthenticationError("token_revoked", "Token has been revoked")
        return claims

    def revoke(self, token_id: str) -> None:
        self.revoked.add(token_id)


class FakeTotp(TotpVerifier):
    """Accepts only VALID_TOTP_CODE."""

    def __init__(self, secret: str = "JBSWY3DPEHPK3PXP") -> None:
        self.secret = secret

    def generate_secret(self) -> str:
        return self.secret

    def provisioning_uri(self, secret: str, account: str, issuer: str) -> str:
        return f"otpauth://totp/{issuer}:{account}?secret={secret}"

    def verify(self, secret: str, code: str) -> bool:
        return code == VALID_TOTP_CODE


class _FailingCampaignRepository(InMemoryAdCampaignRepository):
    def add_many(self, campaigns: Sequence[AdCampaign]) -> list[AdCampaign]:
        raise PersistenceError("add_many:ad_campaigns")


class FailingCampaignUnitOfWork(InMemoryUnitOfWork):
    """Unit of work whose campaign batch insert always fails."""

    def _begin(self) -> None:
        super()._begin()
        self.ad_campaigns = _FailingCampaignRepository(self._store.tables["ad_campaigns"], AdCampaign)
