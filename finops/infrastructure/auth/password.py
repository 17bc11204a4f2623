"""bcrypt password hashing."""

import bcrypt

from finops.application.ports import PasswordHasher
from finops.shared.logging import get_logger

logger = get_logger("infrastructure.auth.password")

# bcrypt only looks at the first 72 bytes
_MAX_PASSWORD_BYTES = 72


class BcryptPasswordHasher(PasswordHasher):
    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=self._rounds))
        return hashed.decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(_encode(password), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("password_hash_malformed")
            return False


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
