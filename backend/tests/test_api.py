"""API tests for the pilot endpoints."""
import pytest
from fastapi.testclient import TestClient

from pilot_manager.main import app
from pilot_manager.services.pilot_service import PilotService, get_pilot_service
from pilot_manager.services.pilot_store import InMemoryPilotRepository

BASE = "/api/v1/pilots"
AS_OF = {"as_of": "2025-07-02"}


@pytest.fixture
def client(service):
    app.dependency_overrides[get_pilot_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestMeta:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestPilotEndpoints:
    def test_list(self, client):
        response = client.get(BASE, params=AS_OF)

        assert response.status_code == 200
        body = response.json()
        assert [item["pilot"]["id"] for item in body] == [1, 2]
        assert body[1]["risk_level"] == "Critical"

    def test_get_pilot(self, client):
        response = client.get(f"{BASE}/1", params=AS_OF)

        assert response.status_code == 200
        body = response.json()
        assert body["health_score"] == 84
        assert body["conversion_probability"] == 97
        assert body["risk_level"] == "Low"

    def test_get_unknown_pilot(self, client):
        response = client.get(f"{BASE}/99")
        assert response.status_code == 404
        assert response.json()["detail"] == "Pilot 99 not found"

    def test_prediction(self, client):
        response = client.get(f"{BASE}/2/prediction", params=AS_OF)

        assert response.status_code == 200
        risk_types = [r["type"] for r in response.json()["risks"]]
        assert "stakeholder_disengaged" in risk_types
        assert "low_health_score" in risk_types

    def test_financials(self, client):
        response = client.get(f"{BASE}/1/financials", params={"pilot_cost": 50000})

        assert response.status_code == 200
        body = response.json()
        assert body["roi"]["roi"] == 700.0
        assert body["payback"]["payback_months"] == 2

    def test_financials_rejects_non_positive_cost(self, client):
        response = client.get(f"{BASE}/1/financials", params={"pilot_cost": 0})
        assert response.status_code == 422

    def test_refresh(self, client):
        response = client.post(f"{BASE}/1/refresh", params=AS_OF)

        assert response.status_code == 200
        assert response.json()["health_score"] == 84
        listed = client.get(BASE, params=AS_OF).json()
        assert listed[0]["pilot"]["health_score"] == 84

    def test_refresh_unknown(self, client):
        assert client.post(f"{BASE}/99/refresh").status_code == 404

    def test_portfolio_summary(self, client):
        response = client.get(f"{BASE}/portfolio/summary", params=AS_OF)

        assert response.status_code == 200
        assert response.json()["total_pipeline_value"] == 1120000


class TestScoreEndpoint:
    @pytest.fixture
    def payload(self):
        return {
            "pilot": {
                "id": 7,
                "company_name": "Initech",
                "industry": "Financial Services",
                "start_date": "2025-01-01",
                "end_date": "2025-12-31",
                "status": "Active",
                "contract_value": 600000,
                "arr_projection": 400000,
            },
            "success_criteria": [
                {"pilot_id": 7, "description": "Cut close time", "status": "Achieved", "weight": 2},
                {"pilot_id": 7, "description": "SSO rollout", "status": "In Progress"},
            ],
            "stakeholders": [
                {"pilot_id": 7, "name": "CFO", "engagement_level": "High", "last_contact": "2025-07-01"},
            ],
            "metrics": [],
            "as_of": "2025-07-02",
        }

    def test_score(self, client, payload):
        response = client.post(f"{BASE}/score", json=payload)

        assert response.status_code == 200
        body = response.json()
        # criteria 40 * 2.5 / 3, timeline 24, Active 8, over 80
        assert body["health"]["health_score"] == 82
        assert body["health"]["score_band"] == "Healthy"
        assert body["risk_level"] == "Low"
        assert body["prediction"]["factors"]["criteria_completion"] == 67

    def test_score_rejects_mismatched_records(self, client, payload):
        payload["stakeholders"][0]["pilot_id"] = 8
        response = client.post(f"{BASE}/score", json=payload)
        assert response.status_code == 422

    def test_score_rejects_inverted_dates(self, client, payload):
        payload["pilot"]["end_date"] = "2024-12-31"
        response = client.post(f"{BASE}/score", json=payload)
        assert response.status_code == 422

class TestCreateEndpoints:
    """Create a pilot and its records over HTTP, then read the pilot back."""

    NEW_PILOT = {
        "company_name": "Initech",
        "industry": "Finance",
        "start_date": "2025-01-01",
        "end_date": "2025-12-31",
        "contract_value": 150000,
        "arr_projection": 600000,
    }

    @pytest.fixture
    def empty_client(self):
        service = PilotService(InMemoryPilotRepository())
        app.dependency_overrides[get_pilot_service] = lambda: service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_create_and_read_back(self, empty_client):
        response = empty_client.post(BASE, json=self.NEW_PILOT)
        assert response.status_code == 201
        assert response.json()["id"] == 1
        assert response.json()["status"] == "Active"

        criterion = empty_client.post(
            f"{BASE}/1/success-criteria",
            json={"description": "SSO rollout", "status": "Achieved"},
        )
        assert criterion.status_code == 201
        assert criterion.json()["pilot_id"] == 1
        assert criterion.json()["id"] is not None

        stakeholder = empty_client.post(
            f"{BASE}/1/stakeholders",
            json={"name": "Pat Lee", "engagement_level": "High", "last_contact": "2025-06-30"},
        )
        assert stakeholder.status_code == 201

        metric = empty_client.post(
            f"{BASE}/1/metrics",
            json={"name": "weekly_active_users", "value": "80", "recorded_at": "2025-07-01T10:00:00"},
        )
        assert metric.status_code == 201

        detail = empty_client.get(f"{BASE}/1", params=AS_OF)
        assert detail.status_code == 200
        body = detail.json()
        assert body["pilot"]["company_name"] == "Initech"
        assert body["health_score"] == 84
        assert [s["name"] for s in body["stakeholders"]] == ["Pat Lee"]
        assert body["metrics"][0]["name"] == "weekly_active_users"
        assert [p["pilot"]["id"] for p in empty_client.get(BASE).json()] == [1]

    def test_second_pilot_gets_next_id(self, client):
        response = client.post(BASE, json=self.NEW_PILOT)
        assert response.json()["id"] == 3

    def test_inverted_dates_rejected(self, empty_client):
        payload = {**self.NEW_PILOT, "end_date": "2024-12-31"}
        assert empty_client.post(BASE, json=payload).status_code == 422

    def test_record_for_unknown_pilot(self, empty_client):
        response = empty_client.post(f"{BASE}/9/metrics", json={"name": "x", "recorded_at": "2025-07-01T10:00:00"})
        assert response.status_code == 404

    def test_record_for_other_pilot(self, client):
        response = client.post(f"{BASE}/1/stakeholders", json={"pilot_id": 2, "name": "Pat Lee"})
        assert response.status_code == 422
        assert "belongs to pilot 2" in response.json()["detail"]



if __name__ == "__main__":
    pytest.main([__file__, "-v"])
