"""Whitelist administration and audit trails.

- GET/POST /allowed-users, PATCH/DELETE /allowed-users/{id} - administer
- GET /audit-logs - Data change history (view)
- GET /login-audit - Sign-in attempts (administer)
"""

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from apps.api.deps import get_container, require_admin, require_view
from apps.api.schemas.auth import AllowedUserCreate, AllowedUserUpdate
from finops.domain.entities import snapshot
from finops.domain.session import SessionContext
from finops.infrastructure.bootstrap import Container

router = APIRouter(tags=["access"])


@router.get("/allowed-users", response_model=list[dict[str, Any]])
def list_allowed_users(
    session: SessionContext = Depends(require_admin),
    container: Container = Depends(get_container),
) -> list[dict[str, Any]]:
    return [snapshot(entry) for entry in container.allowed_users.list_all(session)]


@router.post("/allowed-users", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
def add_allowed_user(
    body: AllowedUserCreate,
    session: SessionContext = Depends(require_admin),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return snapshot(container.allowed_users.add(session, body.email, body.role))


@router.patch("/allowed-users/{entry_id}", response_model=dict[str, Any])
def update_allowed_user(
    entry_id: str,
    body: AllowedUserUpdate,
    session: SessionContext = Depends(require_admin),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    entry = container.allowed_users.update(session, entry_id, role=body.role, active=body.active)
    return snapshot(entry)


@router.delete("/allowed-users/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def remove_allowed_user(
    entry_id: str,
    session: SessionContext = Depends(require_admin),
    container: Container = Depends(get_container),
) -> Response:
    container.allowed_users.remove(session, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/audit-logs", response_model=list[dict[str, Any]])
def list_audit_logs(
    session: SessionContext = Depends(require_view),
    container: Container = Depends(get_container),
) -> list[dict[str, Any]]:
    return [snapshot(entry) for entry in container.audit_logs.execute(session)]


@router.get("/login-audit", response_model=list[dict[str, Any]])
def list_login_audit(
    session: SessionContext = Depends(require_admin),
    container: Container = Depends(get_container),
) -> list[dict[str, Any]]:
    return [snapshot(entry) for entry in container.login_audit.execute(session)]
