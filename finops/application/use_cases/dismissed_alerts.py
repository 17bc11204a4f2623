"""Dismissing and restoring dashboard alerts."""

from typing import Callable

from finops.application.ports import Clock, UnitOfWork
from finops.application.use_cases.audit import require
from finops.domain.entities import DismissedAlert
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import get_logger


class DismissedAlertService:
    def __init__(self, uow_factory: Callable[[], UnitOfWork], clock: Clock) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._logger = get_logger("application.dismissed_alerts")

    def list_all(self, session: SessionContext) -> list[DismissedAlert]:
        require(session, Capability.VIEW)
        with self._uow_factory() as uow:
            return uow.dismissed_alerts.list_all()

    def dismiss(self, session: SessionContext, alert_key: str) -> DismissedAlert:
        """Dismiss an alert; dismissing twice returns the existing row."""
        require(session, Capability.EDIT)
        with self._uow_factory() as uow:
            existing = uow.dismissed_alerts.get_by_key(alert_key)
            if existing is not None:
                return existing
            now = self._clock.now()
            dismissed = DismissedAlert(
                alert_key=alert_key,
                dismissed_by=session.user_id,
                dismissed_at=now,
                created_at=now,
            )
            uow.dismissed_alerts.add(dismissed)

        self._logger.info("alert_dismissed", alert_key=alert_key)
        return dismissed

    def restore(self, session: SessionContext, alert_key: str) -> bool:
        """Undo a dismissal. Returns False when the alert was not dismissed."""
        require(session, Capability.EDIT)
        with self._uow_factory() as uow:
            existing = uow.dismissed_alerts.get_by_key(alert_key)
            if existing is None:
                return False
            uow.dismissed_alerts.delete(existing.id)

        self._logger.info("alert_restored", alert_key=alert_key)
        return True
