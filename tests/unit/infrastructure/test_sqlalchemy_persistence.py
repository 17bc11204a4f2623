"""Test the SQLAlchemy unit of work against in-memory SQLite."""

from datetime import date, datetime, timedelta, timezone

import pytest

from finops.application.errors import PersistenceError
from finops.application.use_cases.import_campaigns import ImportCampaignsRequest, PreviewImportRequest
from finops.domain.entities import (
    AdCampaign,
    AdPerformance,
    AllowedUser,
    LoginAuditEntry,
    Platform,
    PlatformType,
)
from finops.domain.imports import ImportedCampaignRow, ParsedImport
from finops.domain.session import AppRole
from finops.infrastructure.bootstrap import build_container
from finops.infrastructure.persistence import (
    SqlAlchemyUnitOfWork,
    create_db_engine,
    create_schema,
    create_session_factory,
)

pytestmark = pytest.mark.integration


@pytest.fixture
def sql_uow_factory():
    engine = create_db_engine("sqlite:///:memory:")
    create_schema(engine)
    session_factory = create_session_factory(engine)
    yield lambda: SqlAlchemyUnitOfWork(session_factory)
    engine.dispose()


@pytest.fixture
def sql_container(config, sql_uow_factory, clock, tokens, password_hasher, totp):
    return build_container(
        config, sql_uow_factory, clock=clock, tokens=tokens, password_hasher=password_hasher, totp=totp
    )


class TestSqlAlchemyUnitOfWork:
    """Commit on success, roll back on error."""

    def test_commit_and_read_back(self, sql_uow_factory):
        platform = Platform(name="Inter", type="bank", balance=123.45, currency="USD")

        with sql_uow_factory() as uow:
            uow.platforms.add(platform)

        with sql_uow_factory() as uow:
            loaded = uow.platforms.get(platform.id)

        assert loaded.name == "Inter"
        assert loaded.type is PlatformType.BANK
        assert loaded.balance == pytest.approx(123.45)
        assert loaded.currency == "USD"

    def test_exception_rolls_back(self, sql_uow_factory):
        platform = Platform(name="Inter", type="bank")

        with pytest.raises(RuntimeError):
            with sql_uow_factory() as uow:
                uow.platforms.add(platform)
                raise RuntimeError("boom")

        with sql_uow_factory() as uow:
            assert uow.platforms.get(platform.id) is None

    def test_duplicate_key_is_a_persistence_error(self, sql_uow_factory):
        platform = Platform(name="Inter", type="bank")
        with sql_uow_factory() as uow:
            uow.platforms.add(platform)

        with pytest.raises(PersistenceError) as exc_info:
            with sql_uow_factory() as uow:
                uow.platforms.add(platform)
        assert exc_info.value.operation == "insert:platforms"

    def test_campaign_requires_existing_parent(self, sql_uow_factory):
        orphan = AdCampaign(ad_performance_id="missing", campaign_name="Orphan")

        with pytest.raises(PersistenceError):
            with sql_uow_factory() as uow:
                uow.ad_campaigns.add_many([orphan])

    def test_oversized_integer_is_a_persistence_error(self, sql_uow_factory):
        parent = AdPerformance(platform="meta", date=date(2026, 3, 1))
        with sql_uow_factory() as uow:
            uow.ad_performance.add(parent)

        with pytest.raises(PersistenceError) as exc_info:
            with sql_uow_factory() as uow:
                uow.ad_campaigns.add_many(
                    [AdCampaign(ad_performance_id=parent.id, campaign_name="Big", sales=10**20)]
                )
        assert exc_info.value.operation == "insert:ad_campaigns"

        with sql_uow_factory() as uow:
            assert uow.ad_campaigns.list_for([parent.id]) == []

    def test_update_and_delete(self, sql_uow_factory):
        platform = Platform(name="Inter", type="bank", balance=1)
        with sql_uow_factory() as uow:
            uow.platforms.add(platform)

        with sql_uow_factory() as uow:
            uow.platforms.update(Platform(name="Inter PJ", type="bank", balance=2, id=platform.id))
        with sql_uow_factory() as uow:
            assert uow.platforms.get(platform.id).name == "Inter PJ"
            uow.platforms.delete(platform.id)
        with sql_uow_factory() as uow:
            assert uow.platforms.list_all() == []

    def test_list_all_orders_and_limits(self, sql_uow_factory):
        base = datetime(2026, 3, 1, tzinfo=timezone.utc)
        with sql_uow_factory() as uow:
            for offset in range(3):
                uow.platforms.add(Platform(name=f"P{offset}", type="bank", created_at=base + timedelta(days=offset)))

        with sql_uow_factory() as uow:
            names = [p.name for p in uow.platforms.list_all(limit=2)]

        assert names == ["P2", "P1"]


class TestSpecialisedQueries:
    def test_allowed_user_by_email(self, sql_uow_factory):
        with sql_uow_factory() as uow:
            uow.allowed_users.add(AllowedUser(email="Ana@Example.com", role=AppRole.ADMIN))

        with sql_uow_factory() as uow:
            entry = uow.allowed_users.get_by_email("ana@example.com")

        assert entry.role is AppRole.ADMIN
        assert entry.active is True

    def test_count_failures_since(self, sql_uow_factory):
        now = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)
        entries = [
            LoginAuditEntry(email="ana@example.com", success=False, reason="auth_failed", created_at=now),
            LoginAuditEntry(email="ana@example.com", success=False, reason="mfa_failed", created_at=now),
            LoginAuditEntry(email="ana@example.com", success=False, reason="rate_limited", created_at=now),
            LoginAuditEntry(email="ana@example.com", success=True, reason="success", created_at=now),
            LoginAuditEntry(
                email="ana@example.com", success=False, reason="auth_failed", created_at=now - timedelta(hours=1)
            ),
            LoginAuditEntry(email="bob@example.com", success=False, reason="auth_failed", created_at=now),
        ]
        with sql_uow_factory() as uow:
            for entry in entries:
                uow.login_audit.add(entry)

        with sql_uow_factory() as uow:
            count = uow.login_audit.count_failures_since("ana@example.com", now - timedelta(minutes=10))

        assert count == 2

    def test_campaigns_for_records(self, sql_uow_factory):
        parent = AdPerformance(platform="meta", date=date(2026, 3, 1), investment=10, revenue=30)
        with sql_uow_factory() as uow:
            uow.ad_performance.add(parent)
            uow.ad_campaigns.add_many(
                [
                    AdCampaign(ad_performance_id=parent.id, campaign_name="A", spend=5.0),
                    AdCampaign(ad_performance_id=parent.id, campaign_name="B", spend=5.0),
                ]
            )

        with sql_uow_factory() as uow:
            campaigns = uow.ad_campaigns.list_for([parent.id])
            assert uow.ad_performance.get(parent.id).roas == pytest.approx(3.0)

        assert {c.campaign_name for c in campaigns} == {"A", "B"}

    def test_deleting_parent_cascades_to_campaigns(self, sql_uow_factory):
        parent = AdPerformance(platform="meta", date=date(2026, 3, 1))
        with sql_uow_factory() as uow:
            uow.ad_performance.add(parent)
            uow.ad_campaigns.add_many([AdCampaign(ad_performance_id=parent.id, campaign_name="A")])

        with sql_uow_factory() as uow:
            uow.ad_performance.delete(parent.id)

        with sql_uow_factory() as uow:
            assert uow.ad_campaigns.list_for([parent.id]) == []


class TestImportTransaction:
    def test_import_is_atomic_on_database(self, sql_container, sql_uow_factory, manager_session):
        parsed = ParsedImport(
            campaigns=(
                ImportedCampaignRow(line=2, campaign_name="A", spend=10.0, revenue=40.0, sales=2),
                ImportedCampaignRow(line=3, campaign_name="B", spend=5.0, revenue=5.0, sales=1),
            )
        )

        response = sql_container.import_campaigns.execute(
            ImportCampaignsRequest(platform="meta", date=date(2026, 3, 14), parsed=parsed),
            manager_session,
        )

        with sql_uow_factory() as uow:
            parent = uow.ad_performance.get(response.ad_performance_id)
            campaigns = uow.ad_campaigns.list_for([parent.id])
            audit = uow.audit_logs.list_all()

        assert parent.investment == pytest.approx(15.0)
        assert parent.sales == 3
        assert len(campaigns) == 2
        assert audit[0].entity_id == parent.id
        assert audit[0].new_values["platform"] == "meta"

    def test_oversized_cell_imports_as_zero(self, sql_container, sql_uow_factory, manager_session):
        header = ";".join(f"col{i}" for i in range(23))
        cells = [""] * 23
        cells[1], cells[4], cells[6] = "Big", "99999999999999999999", "R$ 10,00"
        upload = PreviewImportRequest("campaigns.csv", "text/csv", f"{header}\n{';'.join(cells)}\n".encode())

        parsed = sql_container.preview_import.execute(upload, manager_session)
        response = sql_container.import_campaigns.execute(
            ImportCampaignsRequest(platform="meta", date=date(2026, 3, 14), parsed=parsed),
            manager_session,
        )

        with sql_uow_factory() as uow:
            (campaign,) = uow.ad_campaigns.list_for([response.ad_performance_id])

        assert campaign.sales == 0
        assert campaign.spend == pytest.approx(10.0)
        assert [w.column for w in response.warnings] == ["sales"]
