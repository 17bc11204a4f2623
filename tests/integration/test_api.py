"""Integration tests for the HTTP API.

The app runs on the in-memory container with fake tokens, so every request
goes through the real middleware stack, dependencies and error handlers.
"""

import pytest
from fastapi.testclient import TestClient

from apps.api.main import create_app
from finops.domain.session import AppRole
from tests.fakes import TEST_PASSWORD

HEADER = ";".join(f"col{i}" for i in range(23))


def csv_row(name, sales, spend, revenue):
    cells = [""] * 23
    cells[0], cells[1], cells[4], cells[6], cells[7] = "Ativa", name, sales, spend, revenue
    return ";".join(cells)


CAMPAIGNS_CSV = "\n".join(
    [
        HEADER,
        csv_row("2 Campanhas", "6", "R$ 150,00", "R$ 600,00"),
        csv_row("Campaign A", "2", "R$ 50,00", "R$ 100,00"),
        csv_row("Campaign B", "4", "R$ 100,00", "R$ 500,00"),
    ]
).encode("utf-8")


@pytest.fixture
def client(container):
    return TestClient(create_app(container))


@pytest.fixture
def sign_in(client, seed_user):
    """Whitelist an account with ``role`` and return its bearer headers."""

    def _sign_in(email: str, role: AppRole) -> dict[str, str]:
        seed_user(email, role=role)
        response = client.post("/auth/sign-in", json={"email": email, "password": TEST_PASSWORD})
        assert response.status_code == 200
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _sign_in


@pytest.fixture
def admin(sign_in):
    return sign_in("admin@example.com", AppRole.ADMIN)


@pytest.fixture
def manager(sign_in):
    return sign_in("manager@example.com", AppRole.MANAGER)


@pytest.fixture
def viewer(sign_in):
    return sign_in("viewer@example.com", AppRole.VIEWER)


class TestHealthAndMiddleware:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.0.0", "environment": "test"}

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Content-Security-Policy" in response.headers
        assert "Strict-Transport-Security" not in response.headers

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-Id": "req-123"})

        assert response.headers["x-request-id"] == "req-123"
        assert response.headers["x-response-time"].endswith("ms")

    def test_untrusted_host_is_rejected(self, client):
        assert client.get("/health", headers={"Host": "evil.example.com"}).status_code == 400


class TestAuthEndpoints:
    """Sign-in, session lookup and sign-out."""

    def test_missing_token(self, client):
        response = client.get("/platforms")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        body = response.json()
        assert body["error"]["code"]
        assert body["request_id"]
        assert "timestamp" in body

    def test_unknown_token(self, client):
        response = client.get("/platforms", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_sign_in_and_session(self, client, seed_user):
        seed_user("ana@example.com", role=AppRole.MANAGER, name="Ana")

        signed_in = client.post("/auth/sign-in", json={"email": "ana@example.com", "password": TEST_PASSWORD})
        body = signed_in.json()

        assert body["token_type"] == "bearer"
        assert body["requires_mfa"] is False
        assert body["role"] == "manager"

        session = client.get("/auth/session", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert session.status_code == 200
        assert session.json()["email"] == "ana@example.com"
        assert session.json()["mfa_verified"] is False

    def test_wrong_password(self, client, seed_user):
        seed_user("ana@example.com")

        response = client.post("/auth/sign-in", json={"email": "ana@example.com", "password": "wrong"})

        assert response.status_code == 401

    def test_sign_out_revokes_token(self, client, viewer):
        assert client.post("/auth/sign-out", headers=viewer).status_code == 204
        assert client.get("/auth/session", headers=viewer).status_code == 401

    def test_register_whitelisted_email(self, client, seed_user):
        seed_user("new@example.com", password=None)

        response = client.post(
            "/auth/register",
            json={"email": "new@example.com", "name": "New Person", "password": "long-enough-pass"},
        )

        assert response.status_code == 201
        assert response.json()["email"] == "new@example.com"

    def test_register_short_password(self, client):
        response = client.post(
            "/auth/register", json={"email": "new@example.com", "name": "New", "password": "short"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestRecordEndpoints:
    """Create, read, update and delete through the resource routers."""

    def test_platform_crud(self, client, manager, viewer):
        created = client.post(
            "/platforms",
            json={"name": "Banco Inter", "type": "bank", "balance": 1500, "currency": "BRL"},
            headers=manager,
        )
        assert created.status_code == 201
        platform_id = created.json()["id"]

        listed = client.get("/platforms", headers=viewer)
        assert [p["id"] for p in listed.json()] == [platform_id]

        patched = client.patch(f"/platforms/{platform_id}", json={"balance": 2000}, headers=manager)
        assert patched.status_code == 200
        assert patched.json()["balance"] == 2000
        assert patched.json()["name"] == "Banco Inter"

        assert client.delete(f"/platforms/{platform_id}", headers=manager).status_code == 204
        assert client.get(f"/platforms/{platform_id}", headers=viewer).status_code == 404

    def test_viewer_cannot_write(self, client, viewer):
        response = client.post("/platforms", json={"name": "Inter", "type": "bank"}, headers=viewer)

        assert response.status_code == 403
        assert "error" in response.json()

    def test_body_validation(self, client, manager):
        response = client.post(
            "/withdrawals",
            json={"amount": 0, "date": "2026-03-10", "reason": "", "destination": "Conta"},
            headers=manager,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        fields = {detail["field"] for detail in body["error"]["details"]}
        assert "body.amount" in fields
        assert "body.reason" in fields

    def test_unknown_fields_are_rejected(self, client, manager):
        response = client.post(
            "/platforms", json={"name": "Inter", "type": "bank", "owner": "x"}, headers=manager
        )
        assert response.status_code == 400

    def test_tax_paid_toggle(self, client, manager):
        tax = client.post(
            "/taxes",
            json={"description": "DAS", "amount": 350.0, "tax_date": "2026-03-01", "due_date": "2026-03-20"},
            headers=manager,
        ).json()

        paid = client.put(f"/taxes/{tax['id']}/paid", json={"paid": True}, headers=manager)

        assert paid.status_code == 200
        assert paid.json()["paid"] is True
        assert paid.json()["paid_at"] is not None

    def test_variable_expense_delete_needs_admin(self, client, manager, admin):
        expense = client.post(
            "/variable-expenses",
            json={"description": "Uber", "amount": 42.5, "category": "transporte", "date": "2026-03-12"},
            headers=manager,
        ).json()

        assert client.delete(f"/variable-expenses/{expense['id']}", headers=manager).status_code == 403
        assert client.delete(f"/variable-expenses/{expense['id']}", headers=admin).status_code == 204

    def test_reimburse(self, client, manager):
        expense = client.post(
            "/variable-expenses",
            json={
                "description": "Hotel",
                "amount": 300,
                "category": "viagem",
                "date": "2026-03-12",
                "is_reimbursement": True,
            },
            headers=manager,
        ).json()

        response = client.post(f"/variable-expenses/{expense['id']}/reimburse", headers=manager)

        assert response.status_code == 200
        assert response.json()["reimbursement_status"] == "paid"


class TestImportEndpoints:
    def test_preview(self, client, manager):
        response = client.post(
            "/ads/imports/preview",
            files={"file": ("campaigns.csv", CAMPAIGNS_CSV, "text/csv")},
            headers=manager,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["campaign_name"] == "2 Campanhas"
        assert len(body["campaigns"]) == 2
        assert body["totals"]["investment"] == pytest.approx(150.0)

    def test_import_and_list_campaigns(self, client, manager, viewer):
        response = client.post(
            "/ads/imports",
            files={"file": ("campaigns.csv", CAMPAIGNS_CSV, "text/csv")},
            data={"platform": "meta", "date": "2026-03-14", "manager": "Marcos"},
            headers=manager,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["campaigns_imported"] == 2
        assert body["totals"]["sales"] == 6

        campaigns = client.get(
            "/ads/campaigns", params={"ad_performance_id": body["ad_performance_id"]}, headers=viewer
        )
        assert {c["campaign_name"] for c in campaigns.json()} == {"Campaign A", "Campaign B"}

    def test_spreadsheet_extension_is_unsupported(self, client, manager):
        response = client.post(
            "/ads/imports/preview",
            files={"file": ("campaigns.xlsx", CAMPAIGNS_CSV, "text/csv")},
            headers=manager,
        )

        assert response.status_code == 415

    def test_viewer_cannot_import(self, client, viewer):
        response = client.post(
            "/ads/imports/preview",
            files={"file": ("campaigns.csv", CAMPAIGNS_CSV, "text/csv")},
            headers=viewer,
        )
        assert response.status_code == 403


class TestDashboardAndAccess:
    def test_dashboard(self, client, manager, viewer):
        client.post("/platforms", json={"name": "Inter", "type": "bank", "balance": 1000}, headers=manager)

        response = client.get("/dashboard", headers=viewer)

        assert response.status_code == 200
        assert response.json()["total_balance"] == pytest.approx(1000.0)
        assert response.json()["selected_month"] == "2026-03"

    def test_dashboard_rejects_bad_month(self, client, viewer):
        assert client.get("/dashboard", params={"month": "2026-13"}, headers=viewer).status_code == 400

    def test_dismiss_and_restore_alert(self, client, manager, viewer):
        assert client.put("/alerts/dismissed/tool-abc", headers=manager).status_code == 200
        assert [a["alert_key"] for a in client.get("/alerts/dismissed", headers=viewer).json()] == ["tool-abc"]

        assert client.delete("/alerts/dismissed/tool-abc", headers=manager).status_code == 204
        assert client.get("/alerts/dismissed", headers=viewer).json() == []

    def test_allowed_users_admin_only(self, client, admin, manager):
        assert client.get("/allowed-users", headers=manager).status_code == 403

        created = client.post(
            "/allowed-users", json={"email": "Bob@Example.com", "role": "viewer"}, headers=admin
        )
        assert created.status_code == 201
        assert created.json()["email"] == "bob@example.com"

        duplicate = client.post("/allowed-users", json={"email": "bob@example.com"}, headers=admin)
        assert duplicate.status_code == 409

    def test_removed_user_loses_access(self, client, admin, manager):
        entries = client.get("/allowed-users", headers=admin).json()
        manager_entry = next(e for e in entries if e["email"] == "manager@example.com")

        assert client.delete(f"/allowed-users/{manager_entry['id']}", headers=admin).status_code == 204
        assert client.get("/platforms", headers=manager).status_code == 401

    def test_admin_cannot_demote_self(self, client, admin):
        entries = client.get("/allowed-users", headers=admin).json()
        own = next(e for e in entries if e["email"] == "admin@example.com")

        response = client.patch(f"/allowed-users/{own['id']}", json={"role": "viewer"}, headers=admin)

        assert response.status_code == 422

    def test_audit_logs_record_changes(self, client, manager, viewer):
        client.post("/platforms", json={"name": "Inter", "type": "bank"}, headers=manager)

        logs = client.get("/audit-logs", headers=viewer).json()

        (entry,) = [log for log in logs if log["entity_type"] == "platforms"]
        assert entry["action"] == "create"
        assert entry["entity_name"] == "Inter"
