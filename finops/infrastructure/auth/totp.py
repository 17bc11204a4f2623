"""Time-based one-time passwords (RFC 6238, HMAC-SHA1, 6 digits, 30 s step)."""

import base64
import hashlib
import hmac
import secrets
import struct
import time
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from finops.application.ports import TotpVerifier

DIGITS = 6
STEP_SECONDS = 30
SECRET_BYTES = 20


class TotpService(TotpVerifier):
    """
    TOTP verifier compatible with common authenticator apps.

    Args:
        valid_window: Accepted steps before and after the current one
        time_source: Seconds since the epoch; ``time.time`` by default
    """

    def __init__(self, valid_window: int = 1, time_source: Optional[Callable[[], float]] = None) -> None:
        self._valid_window = valid_window
        self._time = time_source or time.time

    def generate_secret(self) -> str:
        return base64.b32encode(secrets.token_bytes(SECRET_BYTES)).decode("ascii").rstrip("=")

    def provisioning_uri(self, secret: str, account: str, issuer: str) -> str:
        label = quote(f"{issuer}:{account}")
        query = urlencode(
            {
                "secret": secret,
                "issuer": issuer,
                "algorithm": "SHA1",
                "digits": DIGITS,
                "period": STEP_SECONDS,
            }
        )
        return f"otpauth://totp/{label}?{query}"

    def verify(self, secret: str, code: str) -> bool:
        code = (code or "").strip().replace(" ", "")
        if len(code) != DIGITS or not (code.isascii() and code.isdigit()):
            return False

        counter = int(self._time() // STEP_SECONDS)
        try:
            return any(
                hmac.compare_digest(self.code_at(secret, counter + offset), code)
                for offset in range(-self._valid_window, self._valid_window + 1)
            )
        except ValueError:
            # binascii.Error for a secret that is not base32
            return False

    def now(self, secret: str) -> str:
        """Current code for ``secret``."""
        return self.code_at(secret, int(self._time() // STEP_SECONDS))

    @staticmethod
    def code_at(secret: str, counter: int) -> str:
        key = _decode_secret(secret)
        digest = hmac.new(key, struct.pack(">Q", counter), hashlib.sha1).digest()
        offset = digest[-1] & 0x0F
        value = struct.unpack(">I", digest[offset:offset + 4])[0] & 0x7FFFFFFF
        return str(value % 10**DIGITS).zfill(DIGITS)


def _decode_secret(secret: str) -> bytes:
    normalized = secret.strip().replace(" ", "").upper()
    padding = "=" * (-len(normalized) % 8)
    return base64.b32decode(normalized + padding)
