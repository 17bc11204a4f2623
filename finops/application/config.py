"""Application configuration for FinOps with secrets management."""

from enum import Enum

from finops.application.ports import SecretsManager

SECURE_JWT_ALGORITHMS = ("RS256", "ES256", "RS512", "ES512")


class Environment(Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class Config:
    """Application configuration loaded through a SecretsManager."""

    def __init__(self, secrets_manager: SecretsManager):
        """Initialize configuration with secrets manager."""
        self.secrets = secrets_manager
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from secrets manager."""
        self.ENVIRONMENT = Environment(self.secrets.get("ENVIRONMENT", "development").lower())

        # Database
        self.DATABASE_URL = self.secrets.get_database_url()

        # JWT Configuration
        public_key, private_key = self.secrets.get_jwt_keys()
        self.JWT_PUBLIC_KEY = public_key
        self.JWT_PRIVATE_KEY = private_key
        self.JWT_ALGORITHM = self.secrets.get("JWT_ALGORITHM", "RS256")
        self.JWT_ISSUER = self.secrets.get("JWT_ISSUER", "finops")
        self.JWT_AUDIENCE = self.secrets.get("JWT_AUDIENCE", "finops-api")
        self.JWT_ACCESS_TOKEN_TTL = int(self.secrets.get("JWT_ACCESS_TOKEN_TTL", "3600"))

        # CORS Configuration
        cors_origins = self.secrets.get("CORS_ALLOWED_ORIGINS", "")
        if self.ENVIRONMENT == Environment.PRODUCTION:
            if not cors_origins:
                raise ValueError("CORS_ALLOWED_ORIGINS must be set in production")
            self.CORS_ALLOWED_ORIGINS = _split(cors_origins)
        else:
            self.CORS_ALLOWED_ORIGINS = _split(
                cors_origins or "http://localhost:5173,http://localhost:3000"
            )

        # Trusted Hosts Configuration
        trusted_hosts = self.secrets.get("TRUSTED_HOSTS", "")
        if self.ENVIRONMENT == Environment.PRODUCTION:
            if not trusted_hosts:
                raise ValueError("TRUSTED_HOSTS must be set in production")
            self.TRUSTED_HOSTS = _split(trusted_hosts)
        else:
            self.TRUSTED_HOSTS = _split(trusted_hosts or "localhost,127.0.0.1,testserver")

        # Logging
        self.LOG_LEVEL = self.secrets.get("LOG_LEVEL", "INFO")
        self.LOG_FORMAT = self.secrets.get("LOG_FORMAT", "json")

        # Security Headers
        self.SECURITY_HEADERS_ENABLED = (
            self.secrets.get("SECURITY_HEADERS_ENABLED", "true") == "true"
        )
        self.CSP_POLICY = self.secrets.get(
            "CSP_POLICY",
            "default-src 'self'; frame-ancestors 'none'; base-uri 'self'",
        )

        # Imports
        self.IMPORT_MAX_FILE_SIZE = int(
            self.secrets.get("IMPORT_MAX_FILE_SIZE", str(10 * 1024 * 1024))
        )

        # Sign-in throttling
        self.LOGIN_RATE_LIMIT_ATTEMPTS = int(self.secrets.get("LOGIN_RATE_LIMIT_ATTEMPTS", "5"))
        self.LOGIN_RATE_LIMIT_WINDOW_SECONDS = int(
            self.secrets.get("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "600")
        )

        # Reporting
        self.FOREIGN_CURRENCY_RATE = float(self.secrets.get("FOREIGN_CURRENCY_RATE", "5.5"))
        self.AUDIT_LOG_LIMIT = int(self.secrets.get("AUDIT_LOG_LIMIT", "500"))

        # MFA
        self.MFA_ISSUER = self.secrets.get("MFA_ISSUER", "FinOps Control")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == Environment.PRODUCTION

    def validate(self) -> None:
        """Validate critical configuration values."""
        if self.LOGIN_RATE_LIMIT_ATTEMPTS < 1 or self.LOGIN_RATE_LIMIT_WINDOW_SECONDS < 1:
            raise ValueError("Login rate limit attempts and window must be positive")

        if self.IMPORT_MAX_FILE_SIZE < 1:
            raise ValueError("IMPORT_MAX_FILE_SIZE must be positive")

        if self.ENVIRONMENT == Environment.PRODUCTION:
            if not self.JWT_PUBLIC_KEY or not self.JWT_PRIVATE_KEY:
                raise ValueError("JWT_PUBLIC_KEY and JWT_PRIVATE_KEY must be set in production")

            if self.JWT_ALGORITHM not in SECURE_JWT_ALGORITHMS:
                raise ValueError(
                    f"JWT_ALGORITHM {self.JWT_ALGORITHM} not secure. "
                    "Use RS256, ES256, RS512, or ES512"
                )

            if "*" in self.CORS_ALLOWED_ORIGINS:
                raise ValueError("Wildcard CORS origins not allowed in production")

            if "*" in self.TRUSTED_HOSTS:
                raise ValueError("Wildcard trusted hosts not allowed in production")

            if not self.SECURITY_HEADERS_ENABLED:
                raise ValueError("Security headers must be enabled in production")

    def reload(self) -> None:
        """Reload configuration from secrets manager."""
        self.secrets.refresh_cache()
        self._load_config()
        self.validate()


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# Global configuration instance
_config: Config | None = None


def get_config(secrets_manager: SecretsManager | None = None) -> Config:
    """
    Get or create global configuration instance.

    Args:
        secrets_manager: SecretsManager implementation, required on first call

    Returns:
        Configuration instance

    Raises:
        ValueError: If secrets_manager is None and no global config exists
    """
    global _config
    if _config is None:
        if secrets_manager is None:
            raise ValueError(
                "SecretsManager must be provided when creating Config for the first time"
            )
        _config = Config(secrets_manager)
        _config.validate()
    return _config


def reset_config() -> None:
    """Forget the global configuration (used between test runs)."""
    global _config
    _config = None
