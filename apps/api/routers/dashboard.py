"""Dashboard figures and alert dismissal."""

from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status

from apps.api.deps import get_container, require_edit, require_view
from finops.domain.entities import snapshot
from finops.domain.session import SessionContext
from finops.infrastructure.bootstrap import Container

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=dict[str, Any])
def get_dashboard(
    month: Optional[str] = Query(None, description="YYYY-MM for the performance chart"),
    session: SessionContext = Depends(require_view),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return asdict(container.dashboard.execute(session, month))


@router.get("/alerts/dismissed", response_model=list[dict[str, Any]])
def list_dismissed_alerts(
    session: SessionContext = Depends(require_view),
    container: Container = Depends(get_container),
) -> list[dict[str, Any]]:
    return [snapshot(d) for d in container.dismissed_alerts.list_all(session)]


@router.put("/alerts/dismissed/{alert_key}", response_model=dict[str, Any])
def dismiss_alert(
    alert_key: str = Path(..., min_length=1, max_length=200),
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return snapshot(container.dismissed_alerts.dismiss(session, alert_key))


@router.delete(
    "/alerts/dismissed/{alert_key}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def restore_alert(
    alert_key: str = Path(..., min_length=1, max_length=200),
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> Response:
    container.dismissed_alerts.restore(session, alert_key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
