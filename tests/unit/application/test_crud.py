"""Test audited CRUD over finance records."""

from datetime import date

import pytest

from finops.application.errors import AuthorizationError, NotFoundError, ValidationError
from finops.application.use_cases.import_campaigns import ImportCampaignsRequest
from finops.domain.entities import AuditAction, MFAFactor, ReimbursementStatus, ToolStatus, UserAccount
from finops.domain.imports import ImportedCampaignRow, ParsedImport


def audit_rows(store):
    return list(store.tables["audit_logs"].values())


class TestEntityService:
    """Test create, update and delete with their audit rows."""

    def test_create_writes_entity_and_audit_row(self, container, store, manager_session):
        platform = container.platforms.create(
            manager_session, {"name": "Banco Inter", "type": "bank", "balance": 1500.0}
        )

        assert store.tables["platforms"][platform.id] == platform
        (entry,) = audit_rows(store)
        assert entry.action is AuditAction.CREATE
        assert entry.entity_type == "platforms"
        assert entry.entity_id == platform.id
        assert entry.entity_name == "Banco Inter"
        assert entry.user_id == "user-manager"
        assert entry.user_name == "Marcos Manager"
        assert entry.old_values is None
        assert entry.new_values["balance"] == 1500.0
        assert entry.new_values["type"] == "bank"

    def test_update_records_before_and_after(self, container, store, manager_session, clock):
        tool = container.tools.create(
            manager_session,
            {"name": "Figma", "category": "design", "monthly_value": 80.0, "due_date": date(2026, 3, 20)},
        )

        updated = container.tools.update(manager_session, tool.id, {"status": "cancelled"})

        assert updated.status is ToolStatus.CANCELLED
        assert updated.updated_at == clock.now()
        entry = audit_rows(store)[-1]
        assert entry.action is AuditAction.UPDATE
        assert entry.old_values["status"] == "active"
        assert entry.new_values["status"] == "cancelled"

    def test_delete_records_old_values(self, container, store, manager_session):
        collaborator = container.collaborators.create(
            manager_session,
            {
                "name": "Dev",
                "type": "pj",
                "role": "backend",
                "monthly_value": 5000.0,
                "payment_date": date(2026, 3, 5),
            },
        )

        container.collaborators.delete(manager_session, collaborator.id)

        assert collaborator.id not in store.tables["collaborators"]
        entry = audit_rows(store)[-1]
        assert entry.action is AuditAction.DELETE
        assert entry.old_values["name"] == "Dev"
        assert entry.new_values is None

    def test_deleting_imported_record_removes_its_campaigns(self, container, store, manager_session, viewer_session):
        parsed = ParsedImport(
            campaigns=(
                ImportedCampaignRow(line=2, campaign_name="A", spend=10.0, sales=1),
                ImportedCampaignRow(line=3, campaign_name="B", spend=5.0, sales=2),
            )
        )
        response = container.import_campaigns.execute(
            ImportCampaignsRequest(platform="meta", date=date(2026, 3, 14), parsed=parsed),
            manager_session,
        )
        parent_id = response.ad_performance_id

        container.ad_performance.delete(manager_session, parent_id)

        assert container.ad_campaigns.for_records(viewer_session, [parent_id]) == []
        assert store.tables["ad_campaigns"] == {}

    def test_deleting_account_removes_its_mfa_factors(self, uow_factory, store):
        account = UserAccount(email="ana@example.com", name="Ana", password_hash="x")
        other = UserAccount(email="bia@example.com", name="Bia", password_hash="x")
        kept = MFAFactor(user_id=other.id, secret="S2")
        with uow_factory() as uow:
            uow.user_accounts.add(account)
            uow.user_accounts.add(other)
            uow.mfa_factors.add(MFAFactor(user_id=account.id, secret="S1"))
            uow.mfa_factors.add(kept)

        with uow_factory() as uow:
            uow.user_accounts.delete(account.id)

        assert list(store.tables["mfa_factors"].values()) == [kept]

    def test_ad_performance_display_name_and_roas(self, container, store, manager_session):
        record = container.ad_performance.create(
            manager_session,
            {"platform": "meta", "date": date(2026, 3, 1), "investment": 100.0, "revenue": 450.0},
        )

        assert record.roas == pytest.approx(4.5)
        assert audit_rows(store)[0].entity_name == "meta - 2026-03-01"

    def test_viewer_can_read_but_not_write(self, container, manager_session, viewer_session):
        container.platforms.create(manager_session, {"name": "Bank", "type": "bank"})

        assert len(container.platforms.list_all(viewer_session)) == 1
        with pytest.raises(AuthorizationError):
            container.platforms.create(viewer_session, {"name": "Other", "type": "bank"})

    def test_rejected_write_leaves_no_audit_row(self, container, store, viewer_session):
        with pytest.raises(AuthorizationError):
            container.platforms.create(viewer_session, {"name": "Bank", "type": "bank"})

        assert audit_rows(store) == []

    def test_missing_record(self, container, manager_session):
        with pytest.raises(NotFoundError):
            container.platforms.get(manager_session, "missing")
        with pytest.raises(NotFoundError):
            container.platforms.delete(manager_session, "missing")

    def test_unknown_and_protected_fields_are_rejected(self, container, manager_session):
        platform = container.platforms.create(manager_session, {"name": "Bank", "type": "bank"})

        with pytest.raises(ValidationError):
            container.platforms.update(manager_session, platform.id, {"id": "other"})
        with pytest.raises(ValidationError):
            container.platforms.create(manager_session, {"name": "Bank", "type": "bank", "color": "red"})

    def test_invalid_values_become_validation_errors(self, container, store, manager_session):
        with pytest.raises(ValidationError):
            container.platforms.create(manager_session, {"name": "Bank", "type": "casino"})
        with pytest.raises(ValidationError):
            container.platforms.create(manager_session, {"name": "Bank"})
        with pytest.raises(ValidationError):
            container.withdrawals.create(
                manager_session,
                {"amount": 0, "date": date(2026, 3, 1), "reason": "x", "destination": "y"},
            )

        assert store.tables["platforms"] == {}
        assert audit_rows(store) == []

    def test_failed_update_keeps_original(self, container, store, manager_session):
        platform = container.platforms.create(manager_session, {"name": "Bank", "type": "bank", "balance": 10})

        with pytest.raises(ValidationError):
            container.platforms.update(manager_session, platform.id, {"balance": -1})

        assert store.tables["platforms"][platform.id].balance == 10
        assert len(audit_rows(store)) == 1


class TestTaxesAndExpenses:
    def test_set_paid_stamps_and_clears_paid_at(self, container, manager_session, clock):
        tax = container.taxes.create(
            manager_session,
            {"description": "DAS", "amount": 300.0, "tax_date": date(2026, 3, 1), "due_date": date(2026, 3, 20)},
        )

        paid = container.taxes.set_paid(manager_session, tax.id, True)
        assert paid.paid is True
        assert paid.paid_at == clock.now()

        pending = container.taxes.set_paid(manager_session, tax.id, False)
        assert pending.paid is False
        assert pending.paid_at is None

    def test_variable_expense_delete_needs_administer(self, container, manager_session, admin_session):
        expense = container.variable_expenses.create(
            manager_session,
            {"description": "Taxi", "amount": 42.0, "category": "transport", "date": date(2026, 3, 3)},
        )

        with pytest.raises(AuthorizationError):
            container.variable_expenses.delete(manager_session, expense.id)

        container.variable_expenses.delete(admin_session, expense.id)
        with pytest.raises(NotFoundError):
            container.variable_expenses.get(admin_session, expense.id)

    def test_mark_reimbursed(self, container, manager_session):
        expense = container.variable_expenses.create(
            manager_session,
            {
                "description": "Hotel",
                "amount": 420.0,
                "category": "travel",
                "date": date(2026, 3, 3),
                "is_reimbursement": True,
            },
        )
        assert expense.reimbursement_status is ReimbursementStatus.PENDING

        paid = container.variable_expenses.mark_reimbursed(manager_session, expense.id)
        assert paid.reimbursement_status is ReimbursementStatus.PAID

    def test_mark_reimbursed_rejects_plain_expense(self, container, manager_session):
        expense = container.variable_expenses.create(
            manager_session,
            {"description": "Lunch", "amount": 30.0, "category": "food", "date": date(2026, 3, 3)},
        )

        with pytest.raises(ValidationError):
            container.variable_expenses.mark_reimbursed(manager_session, expense.id)


class TestAuditListing:
    def test_audit_log_newest_first(self, container, manager_session, viewer_session):
        first = container.platforms.create(manager_session, {"name": "First", "type": "bank"})
        second = container.platforms.create(manager_session, {"name": "Second", "type": "bank"})

        entries = container.audit_logs.execute(viewer_session)

        assert {e.entity_id for e in entries} == {first.id, second.id}
        assert entries[0].created_at >= entries[1].created_at

    def test_login_audit_is_admin_only(self, container, manager_session, admin_session):
        with pytest.raises(AuthorizationError):
            container.login_audit.execute(manager_session)
        assert container.login_audit.execute(admin_session) == []
