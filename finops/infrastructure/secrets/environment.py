"""Environment-variable implementation of the SecretsManager port."""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from finops.application.ports import SecretsManager
from finops.shared.logging import get_logger

logger = get_logger("infrastructure.secrets.environment")

DEFAULT_DATABASE_URL = "sqlite:///./finops.db"


class EnvironmentSecretsConfig(BaseModel):
    """How environment variables are looked up."""

    prefix: str = Field(default="FINOPS_", description="Prefix tried before the bare key")
    overrides: dict[str, str] = Field(default_factory=dict, description="Values that win over the environment")


class EnvironmentSecretsManager(SecretsManager):
    """
    Read configuration from environment variables.

    ``FINOPS_<KEY>`` is tried first, then ``<KEY>``. PEM keys may be given
    with literal ``\\n`` sequences.
    """

    def __init__(
        self,
        config: Optional[EnvironmentSecretsConfig] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config = config or EnvironmentSecretsConfig()
        self._environ = environ
        self._cache: dict[str, str] = {}
        self.refresh_cache()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._cache.get(key, default)

    def get_database_url(self) -> str:
        return self.get("DATABASE_URL", DEFAULT_DATABASE_URL)

    def get_jwt_keys(self) -> tuple[str, str]:
        public_key = (self.get("JWT_PUBLIC_KEY") or "").replace("\\n", "\n")
        private_key = (self.get("JWT_PRIVATE_KEY") or "").replace("\\n", "\n")
        return public_key, private_key

    def refresh_cache(self) -> None:
        environ = self._environ if self._environ is not None else os.environ
        prefix = self.config.prefix

        values: dict[str, str] = {}
        for key, value in environ.items():
            if prefix and key.startswith(prefix):
                values[key[len(prefix):]] = value
            else:
                values.setdefault(key, value)
        values.update(self.config.overrides)

        self._cache = values
        logger.debug("environment_secrets_loaded", key_count=len(values))
