"""Sign-in endpoints for FinOps API.

- POST /auth/sign-in - Password sign-in for whitelisted e-mails
- POST /auth/mfa/challenge - Exchange an MFA-pending token and TOTP code
- POST /auth/sign-out - Revoke the current token
- POST /auth/register - Create credentials for a whitelisted e-mail
- GET /auth/session - Current caller, role and capabilities

Failures never reveal whether an e-mail exists; the login audit keeps
the precise reason.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from apps.api.deps import bearer_token, client_ip, current_claims, current_session, get_container
from apps.api.schemas.auth import (
    AccountResponse,
    MFAChallengeBody,
    RegisterBody,
    SessionResponse,
    SignInBody,
    SignInResponse,
)
from finops.application.ports import TokenClaims
from finops.application.use_cases.authenticate import (
    RegisterAccountRequest,
    SignInRequest,
    SignInResult,
)
from finops.domain.session import SessionContext
from finops.infrastructure.bootstrap import Container
from finops.shared.logging import get_logger

logger = get_logger("apps.api.auth")
router = APIRouter(prefix="/auth", tags=["auth"])


def _sign_in_response(result: SignInResult) -> SignInResponse:
    return SignInResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        requires_mfa=result.requires_mfa,
        user_id=result.user_id,
        email=result.email,
        role=result.role,
        name=result.name,
    )


@router.post(
    "/sign-in",
    response_model=SignInResponse,
    summary="Sign in with e-mail and password",
    description="Returns an access token, or an MFA-pending token when the account has a verified TOTP factor",
)
def sign_in(
    body: SignInBody,
    request: Request,
    container: Container = Depends(get_container),
) -> SignInResponse:
    result = container.sign_in.execute(
        SignInRequest(
            email=body.email,
            password=body.password,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
    )
    return _sign_in_response(result)


@router.post(
    "/mfa/challenge",
    response_model=SignInResponse,
    summary="Complete sign-in with a TOTP code",
)
def complete_mfa_challenge(
    body: MFAChallengeBody,
    request: Request,
    pending_token: str = Depends(bearer_token),
    container: Container = Depends(get_container),
) -> SignInResponse:
    result = container.complete_mfa.execute(
        pending_token,
        body.code,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _sign_in_response(result)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def sign_out(
    claims: TokenClaims = Depends(current_claims),
    container: Container = Depends(get_container),
) -> Response:
    container.sign_out.execute(claims)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, container: Container = Depends(get_container)) -> AccountResponse:
    account = container.register_account.execute(
        RegisterAccountRequest(email=body.email, name=body.name, password=body.password)
    )
    logger.info("account_registered", user_id=account.id)
    return AccountResponse(id=account.id, email=account.email, name=account.name)


@router.get("/session", response_model=SessionResponse)
def get_session(session: SessionContext = Depends(current_session)) -> SessionResponse:
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        name=session.display_name,
        role=session.role,
        capabilities=sorted(c.value for c in session.capabilities),
        mfa_verified=session.mfa_verified,
    )
