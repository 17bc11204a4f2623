"""Test the JWT, bcrypt and TOTP adapters."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from finops.application.errors import AuthenticationError
from finops.infrastructure.auth.jwt_service import JWTKeyGenerator, JWTService
from finops.infrastructure.auth.password import BcryptPasswordHasher
from finops.infrastructure.auth.totp import TotpService

# RFC 6238 appendix B secret ("12345678901234567890") in base32
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture(scope="module")
def rsa_keys():
    return JWTKeyGenerator.generate_rsa_keys()


@pytest.fixture
def jwt_service(rsa_keys):
    public_key, private_key = rsa_keys
    return JWTService(public_key=public_key, private_key=private_key)


class TestJWTService:
    """Test token issue, validation and revocation."""

    def test_issue_and_verify(self, jwt_service):
        issued = jwt_service.issue("user-1", "ana@example.com")

        claims = jwt_service.verify(issued.access_token)

        assert claims.user_id == "user-1"
        assert claims.email == "ana@example.com"
        assert claims.token_id == issued.token_id
        assert claims.mfa_pending is False
        assert claims.aal == "aal1"
        assert issued.expires_in == 3600

    def test_mfa_pending_token_is_short_lived(self, jwt_service):
        issued = jwt_service.issue("user-1", "ana@example.com", mfa_pending=True)

        claims = jwt_service.verify(issued.access_token)

        assert issued.expires_in == 300
        assert claims.mfa_pending is True
        assert claims.expires_at <= datetime.now(timezone.utc) + timedelta(seconds=301)

    def test_mfa_verified_token_is_aal2(self, jwt_service):
        issued = jwt_service.issue("user-1", "ana@example.com", mfa_verified=True)
        assert jwt_service.verify(issued.access_token).aal == "aal2"

    def test_revoked_token_is_rejected(self, jwt_service):
        issued = jwt_service.issue("user-1", "ana@example.com")
        jwt_service.revoke(issued.token_id)

        with pytest.raises(AuthenticationError) as exc_info:
            jwt_service.verify(issued.access_token)
        assert exc_info.value.reason == "token_revoked"

    def test_tampered_token_is_rejected(self, jwt_service):
        token = jwt_service.issue("user-1", "ana@example.com").access_token
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[:-4] + ("AAAA" if signature[-4:] != "AAAA" else "BBBB")])

        with pytest.raises(AuthenticationError) as exc_info:
            jwt_service.verify(tampered)
        assert exc_info.value.reason == "token_invalid"

    def test_token_from_other_key_is_rejected(self, jwt_service):
        other_public, other_private = JWTKeyGenerator.generate_rsa_keys()
        foreign = JWTService(public_key=other_public, private_key=other_private)

        with pytest.raises(AuthenticationError):
            jwt_service.verify(foreign.issue("user-1", "ana@example.com").access_token)

    def test_wrong_audience_is_rejected(self, rsa_keys, jwt_service):
        public_key, private_key = rsa_keys
        other = JWTService(public_key=public_key, private_key=private_key, audience="another-api")

        with pytest.raises(AuthenticationError):
            jwt_service.verify(other.issue("user-1", "ana@example.com").access_token)

    def test_expired_token(self, rsa_keys, jwt_service):
        _, private_key = rsa_keys
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "user-1",
                "email": "ana@example.com",
                "iss": "finops",
                "aud": "finops-api",
                "iat": past,
                "exp": past + timedelta(minutes=5),
                "jti": "old",
            },
            private_key,
            algorithm="RS256",
        )

        with pytest.raises(AuthenticationError) as exc_info:
            jwt_service.verify(token)
        assert exc_info.value.reason == "token_expired"

    def test_ec_keys(self):
        public_key, private_key = JWTKeyGenerator.generate_ec_keys()
        service = JWTService(public_key=public_key, private_key=private_key, algorithm="ES256")

        issued = service.issue("user-1", "ana@example.com")
        assert service.verify(issued.access_token).user_id == "user-1"

    def test_keys_are_required(self):
        with pytest.raises(ValueError):
            JWTService(public_key="", private_key="")


class TestBcryptPasswordHasher:
    def test_hash_and_verify(self):
        hasher = BcryptPasswordHasher(rounds=4)
        hashed = hasher.hash("correct-horse-battery")

        assert hashed != "correct-horse-battery"
        assert hasher.verify("correct-horse-battery", hashed) is True
        assert hasher.verify("wrong", hashed) is False

    def test_malformed_hash_is_false(self):
        assert BcryptPasswordHasher(rounds=4).verify("x", "not-a-bcrypt-hash") is False


class TestTotpService:
    """Test TOTP against the RFC 6238 SHA-1 vectors."""

    @pytest.mark.parametrize(
        "timestamp, expected",
        [(59, "287082"), (1111111109, "081804"), (1234567890, "005924"), (2000000000, "279037")],
    )
    def test_rfc_vectors(self, timestamp, expected):
        assert TotpService.code_at(RFC_SECRET, timestamp // 30) == expected

    def test_verify_accepts_adjacent_steps(self):
        totp = TotpService(time_source=lambda: 1111111109)

        assert totp.verify(RFC_SECRET, "081804") is True
        assert totp.verify(RFC_SECRET, TotpService.code_at(RFC_SECRET, 1111111109 // 30 - 1)) is True
        assert totp.verify(RFC_SECRET, TotpService.code_at(RFC_SECRET, 1111111109 // 30 + 2)) is False

    def test_verify_rejects_malformed_codes(self):
        totp = TotpService(time_source=lambda: 59)

        assert totp.verify(RFC_SECRET, "28708") is False
        assert totp.verify(RFC_SECRET, "28708a") is False
        assert totp.verify(RFC_SECRET, "") is False
        assert totp.verify("not base32 !", "287082") is False

    def test_spaces_in_code_are_ignored(self):
        assert TotpService(time_source=lambda: 59).verify(RFC_SECRET, "287 082") is True

    def test_generated_secret_round_trips(self):
        totp = TotpService(time_source=lambda: 1_700_000_000)
        secret = totp.generate_secret()

        assert len(secret) == 32
        assert totp.verify(secret, totp.now(secret)) is True

    def test_provisioning_uri(self):
        uri = TotpService().provisioning_uri("ABC", "ana@example.com", "FinOps Control")

        assert uri.startswith("otpauth://totp/FinOps%20Control%3Aana%40example.com?")
        assert "secret=ABC" in uri
        assert "issuer=FinOps+Control" in uri


class TestDevelopmentKeyScript:
    def test_save_env_merges_escaped_keys(self, tmp_path):
        from scripts.generate_jwt_keys import save_env

        env_file = tmp_path / ".env.development"
        env_file.write_text("# local\nLOG_LEVEL=DEBUG\nJWT_ALGORITHM=HS256\n")
        public_key, private_key = JWTKeyGenerator.generate_ec_keys()

        save_env(public_key, private_key, "ES256", path=str(env_file))

        lines = dict(
            line.split("=", 1) for line in env_file.read_text().splitlines() if "=" in line and not line.startswith("#")
        )
        assert lines["LOG_LEVEL"] == "DEBUG"
        assert lines["JWT_ALGORITHM"] == "ES256"
        assert "\n" not in lines["JWT_PRIVATE_KEY"]
        assert lines["JWT_PUBLIC_KEY"].replace("\\n", "\n") == public_key
