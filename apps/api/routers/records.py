"""CRUD endpoints for finance records.

Every record type gets the same five routes, built by ``record_router``:

- GET /{resource} - List, newest first (view)
- GET /{resource}/{id} - Fetch one (view)
- POST /{resource} - Create (edit)
- PATCH /{resource}/{id} - Partial update (edit)
- DELETE /{resource}/{id} - Delete (edit, administer for variable expenses)

Each write stores an audit row in the same transaction.
"""

from typing import Any, Callable

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from apps.api.deps import get_container, require_capability, require_edit, require_view
from apps.api.schemas.finance import (
    AdPerformanceCreate,
    AdPerformanceUpdate,
    CollaboratorCreate,
    CollaboratorUpdate,
    PlatformCreate,
    PlatformUpdate,
    TaxCreate,
    TaxPaidUpdate,
    TaxUpdate,
    ToolCreate,
    ToolUpdate,
    VariableExpenseCreate,
    VariableExpenseUpdate,
    WithdrawalCreate,
    WithdrawalUpdate,
)
from finops.application.use_cases.crud import EntityService
from finops.domain.entities import snapshot
from finops.domain.session import Capability, SessionContext
from finops.infrastructure.bootstrap import Container

Record = dict[str, Any]


def record_router(
    resource: str,
    service: Callable[[Container], EntityService],
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    tag: str,
    delete_capability: Capability = Capability.EDIT,
) -> APIRouter:
    """Build the CRUD routes for one record type."""
    router = APIRouter(prefix=f"/{resource}", tags=[tag])

    @router.get("", response_model=list[Record])
    def list_records(
        session: SessionContext = Depends(require_view),
        container: Container = Depends(get_container),
    ) -> list[Record]:
        return [snapshot(entity) for entity in service(container).list_all(session)]

    @router.get("/{record_id}", response_model=Record)
    def get_record(
        record_id: str,
        session: SessionContext = Depends(require_view),
        container: Container = Depends(get_container),
    ) -> Record:
        return snapshot(service(container).get(session, record_id))

    @router.post("", response_model=Record, status_code=status.HTTP_201_CREATED)
    def create_record(
        body: create_model,
        session: SessionContext = Depends(require_edit),
        container: Container = Depends(get_container),
    ) -> Record:
        return snapshot(service(container).create(session, body.model_dump()))

    @router.patch("/{record_id}", response_model=Record)
    def update_record(
        record_id: str,
        body: update_model,
        session: SessionContext = Depends(require_edit),
        container: Container = Depends(get_container),
    ) -> Record:
        return snapshot(service(container).update(session, record_id, body.changes()))

    @router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
    def delete_record(
        record_id: str,
        container: Container = Depends(get_container),
        session: SessionContext = Depends(require_capability(delete_capability)),
    ) -> Response:
        service(container).delete(session, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


platforms = record_router("platforms", lambda c: c.platforms, PlatformCreate, PlatformUpdate, "platforms")
tools = record_router("tools", lambda c: c.tools, ToolCreate, ToolUpdate, "tools")
collaborators = record_router(
    "collaborators", lambda c: c.collaborators, CollaboratorCreate, CollaboratorUpdate, "collaborators"
)
ad_performance = record_router(
    "ad-performance", lambda c: c.ad_performance, AdPerformanceCreate, AdPerformanceUpdate, "ads"
)
withdrawals = record_router(
    "withdrawals", lambda c: c.withdrawals, WithdrawalCreate, WithdrawalUpdate, "withdrawals"
)
taxes = record_router("taxes", lambda c: c.taxes, TaxCreate, TaxUpdate, "taxes")
variable_expenses = record_router(
    "variable-expenses",
    lambda c: c.variable_expenses,
    VariableExpenseCreate,
    VariableExpenseUpdate,
    "variable-expenses",
    delete_capability=Capability.ADMINISTER,
)


@taxes.put("/{record_id}/paid", response_model=Record)
def set_tax_paid(
    record_id: str,
    body: TaxPaidUpdate,
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> Record:
    """Toggle a tax between paid (stamping ``paid_at``) and pending."""
    return snapshot(container.taxes.set_paid(session, record_id, body.paid))


@variable_expenses.post("/{record_id}/reimburse", response_model=Record)
def reimburse_expense(
    record_id: str,
    session: SessionContext = Depends(require_edit),
    container: Container = Depends(get_container),
) -> Record:
    return snapshot(container.variable_expenses.mark_reimbursed(session, record_id))


ROUTERS = (platforms, tools, collaborators, ad_performance, withdrawals, taxes, variable_expenses)
