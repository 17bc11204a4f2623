"""FastAPI dependencies: container lookup, bearer tokens and capability checks."""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finops.application.errors import AuthenticationError
from finops.application.ports import TokenClaims
from finops.domain.session import Capability, SessionContext
from finops.infrastructure.bootstrap import Container
from finops.shared.logging import bind_actor

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Raw bearer token; 401 when the header is missing."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("missing_token", "Authentication required")
    return credentials.credentials


def current_claims(
    token: str = Depends(bearer_token),
    container: Container = Depends(get_container),
) -> TokenClaims:
    """Verified claims of a fully signed-in caller (used by sign-out)."""
    claims, session = container.gate.authenticate(token)
    bind_actor(session.user_id)
    return claims


def current_session(
    token: str = Depends(bearer_token),
    container: Container = Depends(get_container),
) -> SessionContext:
    _, session = container.gate.authenticate(token)
    bind_actor(session.user_id)
    return session


def require_capability(capability: Capability) -> Callable[..., SessionContext]:
    """
    Dependency factory enforcing ``capability`` on the route.

    The role is re-read from the whitelist on every call.
    """

    def dependency(
        token: str = Depends(bearer_token),
        container: Container = Depends(get_container),
    ) -> SessionContext:
        session = container.gate.authorize(token, capability)
        bind_actor(session.user_id)
        return session

    return dependency


require_view = require_capability(Capability.VIEW)
require_edit = require_capability(Capability.EDIT)
require_admin = require_capability(Capability.ADMINISTER)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
