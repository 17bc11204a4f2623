"""
Application bootstrap and dependency injection configuration.
This is the composition root where all dependencies are wired together.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from finops.application.config import Config, Environment, get_config
from finops.application.ports import Clock, PasswordHasher, SecretsManager, TokenService, TotpVerifier, UnitOfWork
from finops.application.use_cases.allowed_users import AllowedUserService
from finops.application.use_cases.audit import ListAuditLogsUseCase, ListLoginAuditUseCase
from finops.application.use_cases.authenticate import (
    CompleteMFAChallengeUseCase,
    LoginThrottle,
    RegisterAccountUseCase,
    SignInUseCase,
    SignOutUseCase,
)
from finops.application.use_cases.authorization import AuthorizationGate
from finops.application.use_cases.crud import (
    AD_PERFORMANCE,
    COLLABORATORS,
    PLATFORMS,
    TOOLS,
    WITHDRAWALS,
    AdCampaignQuery,
    EntityService,
    TaxService,
    VariableExpenseService,
)
from finops.application.use_cases.dashboard import GetDashboardUseCase
from finops.application.use_cases.dismissed_alerts import DismissedAlertService
from finops.application.use_cases.import_campaigns import ImportCampaignsUseCase, PreviewImportUseCase
from finops.application.use_cases.mfa import MFAService
from finops.infrastructure.auth.jwt_service import JWTKeyGenerator, JWTService
from finops.infrastructure.auth.password import BcryptPasswordHasher
from finops.infrastructure.auth.totp import TotpService
from finops.infrastructure.clock import SystemClock
from finops.infrastructure.persistence import (
    SqlAlchemyUnitOfWork,
    create_db_engine,
    create_schema,
    create_session_factory,
)
from finops.infrastructure.secrets import EnvironmentSecretsManager
from finops.shared.logging import get_logger

logger = get_logger("infrastructure.bootstrap")


def bootstrap_config(secrets_manager: Optional[SecretsManager] = None) -> Config:
    """
    Bootstrap application configuration with proper dependency injection.

    Keeps infrastructure dependencies (the environment reader) out of the
    application layer.
    """
    return get_config(secrets_manager or EnvironmentSecretsManager())


@dataclass
class Container:
    """Every use case the API needs, wired to concrete adapters."""

    config: Config
    clock: Clock
    tokens: TokenService
    uow_factory: Callable[[], UnitOfWork]

    gate: AuthorizationGate
    sign_in: SignInUseCase
    complete_mfa: CompleteMFAChallengeUseCase
    sign_out: SignOutUseCase
    register_account: RegisterAccountUseCase
    mfa: MFAService

    platforms: EntityService
    tools: EntityService
    collaborators: EntityService
    ad_performance: EntityService
    withdrawals: EntityService
    taxes: TaxService
    variable_expenses: VariableExpenseService
    ad_campaigns: AdCampaignQuery
    allowed_users: AllowedUserService
    dismissed_alerts: DismissedAlertService
    audit_logs: ListAuditLogsUseCase
    login_audit: ListLoginAuditUseCase
    preview_import: PreviewImportUseCase
    import_campaigns: ImportCampaignsUseCase
    dashboard: GetDashboardUseCase


def build_container(
    config: Config,
    uow_factory: Callable[[], UnitOfWork],
    clock: Optional[Clock] = None,
    tokens: Optional[TokenService] = None,
    password_hasher: Optional[PasswordHasher] = None,
    totp: Optional[TotpVerifier] = None,
) -> Container:
    """Wire use cases; adapters not given are built from ``config``."""
    clock = clock or SystemClock()
    tokens = tokens or build_token_service(config)
    password_hasher = password_hasher or BcryptPasswordHasher()
    totp = totp or TotpService()
    throttle = LoginThrottle(
        max_attempts=config.LOGIN_RATE_LIMIT_ATTEMPTS,
        window_seconds=config.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )

    return Container(
        config=config,
        clock=clock,
        tokens=tokens,
        uow_factory=uow_factory,
        gate=AuthorizationGate(uow_factory, tokens),
        sign_in=SignInUseCase(uow_factory, password_hasher, tokens, clock, throttle),
        complete_mfa=CompleteMFAChallengeUseCase(uow_factory, tokens, totp, clock, throttle),
        sign_out=SignOutUseCase(tokens),
        register_account=RegisterAccountUseCase(uow_factory, password_hasher),
        mfa=MFAService(uow_factory, totp, config.MFA_ISSUER),
        platforms=EntityService(PLATFORMS, uow_factory, clock),
        tools=EntityService(TOOLS, uow_factory, clock),
        collaborators=EntityService(COLLABORATORS, uow_factory, clock),
        ad_performance=EntityService(AD_PERFORMANCE, uow_factory, clock),
        withdrawals=EntityService(WITHDRAWALS, uow_factory, clock),
        taxes=TaxService(uow_factory, clock),
        variable_expenses=VariableExpenseService(uow_factory, clock),
        ad_campaigns=AdCampaignQuery(uow_factory),
        allowed_users=AllowedUserService(uow_factory),
        dismissed_alerts=DismissedAlertService(uow_factory, clock),
        audit_logs=ListAuditLogsUseCase(uow_factory, limit=config.AUDIT_LOG_LIMIT),
        login_audit=ListLoginAuditUseCase(uow_factory, limit=config.AUDIT_LOG_LIMIT),
        preview_import=PreviewImportUseCase(max_file_size=config.IMPORT_MAX_FILE_SIZE),
        import_campaigns=ImportCampaignsUseCase(uow_factory, clock),
        dashboard=GetDashboardUseCase(uow_factory, clock, config.FOREIGN_CURRENCY_RATE),
    )


def build_token_service(config: Config) -> JWTService:
    """JWT service from config; development and test get a throwaway key pair."""
    public_key, private_key = config.JWT_PUBLIC_KEY, config.JWT_PRIVATE_KEY
    algorithm = config.JWT_ALGORITHM

    if not (public_key and private_key):
        if config.ENVIRONMENT not in (Environment.DEVELOPMENT, Environment.TEST):
            raise ValueError("JWT keys must be configured outside development")
        if algorithm.startswith("ES"):
            public_key, private_key = JWTKeyGenerator.generate_ec_keys()
        else:
            public_key, private_key = JWTKeyGenerator.generate_rsa_keys()
        logger.warning("jwt_keys_generated", environment=config.ENVIRONMENT.value)

    return JWTService(
        public_key=public_key,
        private_key=private_key,
        algorithm=algorithm,
        issuer=config.JWT_ISSUER,
        audience=config.JWT_AUDIENCE,
        token_ttl_seconds=config.JWT_ACCESS_TOKEN_TTL,
    )


def build_sqlalchemy_container(config: Config) -> Container:
    """Container backed by the configured database."""
    engine = create_db_engine(config.DATABASE_URL)
    if config.ENVIRONMENT in (Environment.DEVELOPMENT, Environment.TEST):
        create_schema(engine)
    session_factory = create_session_factory(engine)
    return build_container(config, lambda: SqlAlchemyUnitOfWork(session_factory))
