"""Contract tests for rolling payment admin endpoints."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from src.main import app
from src.models import PaymentSchedule
from src.services import get_db
from src.services.rolling_payment_service import RollingPaymentService


@pytest.fixture
def client(db_session):
    """Create test client with database dependency override."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def org_id(lettings):
    """Organization with one ongoing tenancy and one mid-month start."""
    lettings.tenancy(start_date=date(2025, 1, 1))
    lettings.tenancy(start_date=date(2025, 3, 10))
    return lettings.organization.id


class TestGenerateEndpoint:
    """Test POST /api/organizations/{id}/rolling-payments/generate."""

    def test_generate_for_month(self, client, org_id, db_session):
        """Test run counters are returned with wire names."""
        response = client.post(
            f"/api/organizations/{org_id}/rolling-payments/generate",
            json={"month": "2025-03", "actor_id": 7},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "targetMonth": "2025-03",
            "tenanciesProcessed": 2,
            "tenanciesFailed": 0,
            "paymentsCreated": 2,
            "paymentsSkipped": 0,
            "paymentsFailed": 0,
            "membersIneligible": 0,
            "error": None,
        }
        assert db_session.query(PaymentSchedule).count() == 2

    def test_generate_twice_skips(self, client, org_id):
        """Test a repeated manual run creates nothing."""
        url = f"/api/organizations/{org_id}/rolling-payments/generate"
        client.post(url, json={"month": "2025-03"})

        data = client.post(url, json={"month": "2025-03"}).json()

        assert data["paymentsCreated"] == 0
        assert data["paymentsSkipped"] == 2

    def test_generate_without_body_bills_next_month(self, client, org_id):
        """Test omitted month defaults to the month after today."""
        with patch("src.services.rolling_payment_service.date") as mock_date:
            mock_date.today.return_value = date(2025, 4, 20)
            response = client.post(f"/api/organizations/{org_id}/rolling-payments/generate")

        assert response.status_code == 200
        assert response.json()["targetMonth"] == "2025-05"

    def test_generate_invalid_month(self, client, org_id):
        """Test malformed month returns 422."""
        response = client.post(
            f"/api/organizations/{org_id}/rolling-payments/generate",
            json={"month": "2025-13"},
        )
        assert response.status_code == 422

    def test_generate_unknown_organization(self, client, organization):
        """Test missing organization returns 404."""
        response = client.post(
            "/api/organizations/999/rolling-payments/generate", json={"month": "2025-03"}
        )
        assert response.status_code == 404

    def test_generate_failure_returns_500(self, client, org_id):
        """Test a failed run surfaces its error."""
        with patch.object(
            RollingPaymentService,
            "get_eligible_tenancies",
            side_effect=RuntimeError("database unavailable"),
        ):
            response = client.post(
                f"/api/organizations/{org_id}/rolling-payments/generate",
                json={"month": "2025-03"},
            )

        assert response.status_code == 500
        assert response.json()["detail"] == "database unavailable"


class TestReportingEndpoints:
    """Test summary, preview and estimate endpoints."""

    def test_summary(self, client, org_id):
        """Test rolling tenancy counts."""
        response = client.get(f"/api/organizations/{org_id}/rolling-payments/summary")

        assert response.status_code == 200
        assert response.json() == {
            "total_rolling": 2,
            "ongoing": 2,
            "terminating": 0,
            "auto_generate_enabled": 2,
        }

    def test_preview(self, client, org_id, db_session):
        """Test preview lines serialize dates as ISO strings and writes nothing."""
        response = client.get(
            f"/api/organizations/{org_id}/rolling-payments/preview", params={"month": "2025-03"}
        )

        assert response.status_code == 200
        lines = sorted(response.json(), key=lambda line: line["due_date"])
        assert [(line["due_date"], Decimal(str(line["amount_due"]))) for line in lines] == [
            ("2025-03-01", Decimal("433.33")),
            ("2025-04-01", Decimal("740.86")),
        ]
        assert lines[1]["description"] == "Rent - March 2025 (partial) & April 2025"
        assert db_session.query(PaymentSchedule).count() == 0

    def test_preview_requires_month(self, client, org_id):
        """Test month query parameter is mandatory."""
        response = client.get(f"/api/organizations/{org_id}/rolling-payments/preview")
        assert response.status_code == 422

    def test_run_history(self, client, org_id):
        """Test runs that created rows are listed newest first with their actor."""
        url = f"/api/organizations/{org_id}/rolling-payments/generate"
        client.post(url, json={"month": "2025-03", "actor_id": 7})
        client.post(url, json={"month": "2025-03", "actor_id": 7})
        client.post(url, json={"month": "2025-05"})

        response = client.get(f"/api/organizations/{org_id}/rolling-payments/runs")

        assert response.status_code == 200
        runs = response.json()
        assert [(run["target_month"], run["actor_id"]) for run in runs] == [
            ("2025-05", None),
            ("2025-03", 7),
        ]
        assert runs[1]["payments_created"] == 2

    def test_estimate(self, client, org_id):
        """Test statement estimate for a month."""
        response = client.get(
            f"/api/organizations/{org_id}/statements/estimate",
            params={"year": 2025, "month": 4},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["year"] == 2025
        assert data["month"] == 4
        assert Decimal(str(data["estimate"])) == Decimal("1174.19")

    def test_estimate_unassigned_landlord_filter(self, client, org_id):
        """Test -1 landlord filter is accepted."""
        response = client.get(
            f"/api/organizations/{org_id}/statements/estimate",
            params={"year": 2025, "month": 3, "landlord_id": -1},
        )

        assert response.status_code == 200
        assert Decimal(str(response.json()["estimate"])) == Decimal("433.33")

    def test_estimate_invalid_month(self, client, org_id):
        """Test out-of-range month returns 422."""
        response = client.get(
            f"/api/organizations/{org_id}/statements/estimate",
            params={"year": 2025, "month": 0},
        )
        assert response.status_code == 422


def test_health(client):
    """Test liveness check."""
    assert client.get("/health").json() == {"status": "ok"}
