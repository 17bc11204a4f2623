"""Dashboard figures for the signed-in user."""

import re
import time
from typing import Callable, Optional

from finops.application.errors import ValidationError
from finops.application.ports import Clock, UnitOfWork
from finops.application.use_cases.audit import require
from finops.domain.dashboard import DEFAULT_FOREIGN_RATE, DashboardSnapshot, build_snapshot
from finops.domain.session import Capability, SessionContext
from finops.shared.logging import get_logger

_MONTH_KEY = re.compile(r"\d{4}-(0[1-9]|1[0-2])", re.ASCII)


class GetDashboardUseCase:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Clock,
        foreign_rate: float = DEFAULT_FOREIGN_RATE,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock
        self._foreign_rate = foreign_rate
        self._logger = get_logger("application.dashboard")

    def execute(self, session: SessionContext, selected_month: Optional[str] = None) -> DashboardSnapshot:
        """
        Build the dashboard.

        Args:
            session: Caller; needs ``view``
            selected_month: ``YYYY-MM`` for the performance chart, defaults to today's month
        """
        require(session, Capability.VIEW)
        if selected_month is not None and not _MONTH_KEY.fullmatch(selected_month):
            raise ValidationError("month", "expected YYYY-MM")

        start = time.time()
        with self._uow_factory() as uow:
            platforms = uow.platforms.list_all()
            tools = uow.tools.list_all()
            collaborators = uow.collaborators.list_all()
            ads = uow.ad_performance.list_all()
            taxes = uow.taxes.list_all()
            expenses = uow.variable_expenses.list_all()
            dismissed = {d.alert_key for d in uow.dismissed_alerts.list_all()}

        snapshot = build_snapshot(
            platforms,
            tools,
            collaborators,
            ads,
            taxes,
            expenses,
            dismissed_keys=dismissed,
            today=self._clock.now().date(),
            selected_month=selected_month,
            rate=self._foreign_rate,
        )
        self._logger.debug(
            "dashboard_built",
            alerts=len(snapshot.alerts),
            duration_ms=(time.time() - start) * 1000,
        )
        return snapshot
