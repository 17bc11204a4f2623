"""JWT token service.

Signs and validates access tokens with PyJWT using asymmetric keys
(RS256/ES256). Revocation is tracked by token id in process memory.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
import uuid

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from finops.application.errors import AuthenticationError
from finops.application.ports import IssuedToken, TokenClaims, TokenService
from finops.shared.logging import SecurityEventType, SecurityLogger, get_logger

logger = get_logger("infrastructure.auth.jwt_service")

AAL_PASSWORD = "aal1"
AAL_MFA = "aal2"


class JWTService(TokenService):
    """TokenService backed by signed JWTs."""

    def __init__(
        self,
        public_key: str,
        private_key: str,
        algorithm: str = "RS256",
        issuer: str = "finops",
        audience: str = "finops-api",
        token_ttl_seconds: int = 3600,
        mfa_pending_ttl_seconds: int = 300,
        clock_skew_seconds: int = 30,
    ):
        """
        Initialize JWT service with asymmetric keys.

        Args:
            public_key: Public key for verification (PEM format)
            private_key: Private key for signing (PEM format)
            algorithm: JWT algorithm (RS256, ES256 recommended)
            issuer: Expected token issuer
            audience: Expected token audience
            token_ttl_seconds: Access token lifetime
            mfa_pending_ttl_seconds: Lifetime of tokens waiting for the TOTP step
            clock_skew_seconds: Allowed clock skew for validation
        """
        if not public_key or not private_key:
            raise ValueError("Both public_key and private_key must be provided")

        self.public_key = public_key
        self.private_key = private_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience
        self.token_ttl_seconds = token_ttl_seconds
        self.mfa_pending_ttl_seconds = mfa_pending_ttl_seconds
        self.clock_skew_seconds = clock_skew_seconds

        self._revoked: set[str] = set()
        self._security = SecurityLogger("infrastructure.auth.jwt_service")

        logger.info(
            "jwt_service_initialized",
            algorithm=algorithm,
            issuer=issuer,
            audience=audience,
        )

    def issue(
        self,
        user_id: str,
        email: str,
        mfa_pending: bool = False,
        mfa_verified: bool = False,
    ) -> IssuedToken:
        ttl = self.mfa_pending_ttl_seconds if mfa_pending else self.token_ttl_seconds
        jti = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        claims = {
            "sub": user_id,
            "email": email,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "nbf": now,
            "exp": now + timedelta(seconds=ttl),
            "jti": jti,
            "mfa_pending": mfa_pending,
            "aal": AAL_MFA if mfa_verified else AAL_PASSWORD,
        }
        token = jwt.encode(claims, self.private_key, algorithm=self.algorithm)

        logger.info("token_generated", user_id=user_id, jti=jti, mfa_pending=mfa_pending)
        return IssuedToken(access_token=token, token_id=jti, expires_in=ttl)

    def verify(self, token: str) -> TokenClaims:
        try:
            claims = jwt.decode(
                token,
                self.public_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "sub", "jti", "email"]},
                leeway=timedelta(seconds=self.clock_skew_seconds),
            )
        except jwt.ExpiredSignatureError as error:
            logger.warning("token_expired")
            raise AuthenticationError("token_expired", "Token has expired") from error
        except jwt.InvalidTokenError as error:
            self._security.log_security_event(
                SecurityEventType.TOKEN_INVALID,
                "Invalid token presented",
                error_type=error.__class__.__name__,
            )
            raise AuthenticationError("token_invalid", "Invalid token") from error

        if claims["jti"] in self._revoked:
            logger.warning("revoked_token_used", jti=claims["jti"])
            raise AuthenticationError("token_revoked", "Token has been revoked")

        return self._to_claims(claims)

    def revoke(self, token_id: str) -> None:
        self._revoked.add(token_id)
        logger.info("token_revoked", jti=token_id)

    @staticmethod
    def _to_claims(claims: Dict[str, Any]) -> TokenClaims:
        return TokenClaims(
            user_id=claims["sub"],
            email=claims["email"],
            token_id=claims["jti"],
            mfa_pending=bool(claims.get("mfa_pending", False)),
            aal=claims.get("aal", AAL_PASSWORD),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )


class JWTKeyGenerator:
    """Utility for generating JWT signing keys (development only)."""

    @staticmethod
    def generate_rsa_keys() -> tuple[str, str]:
        """Generate RSA key pair for RS256."""
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        return _pem_pair(private_key)

    @staticmethod
    def generate_ec_keys() -> tuple[str, str]:
        """Generate EC key pair for ES256."""
        private_key = ec.generate_private_key(ec.SECP256R1())
        return _pem_pair(private_key)


def _pem_pair(private_key) -> tuple[str, str]:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return public_pem.decode("utf-8"), private_pem.decode("utf-8")
