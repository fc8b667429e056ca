"""Tests for the Flask app used in local development."""

import pytest

from main import app

STATE_PENSION_INPUT = {
    "date_of_birth": "1985-06-15",
    "current_age": 40,
    "ni_years": 35,
    "start_year": 2025,
}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestFlaskApp:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy"}

    def test_api_info(self, client):
        body = client.get("/api").get_json()
        assert body["calculators"][0] == "state-pension"

    def test_calculate(self, client):
        response = client.post("/calculate/tax-relief", json={"annual_salary": 60000, "monthly_contribution": 300})

        assert response.status_code == 200
        body = response.get_json()
        assert body["result"]["tax_relief_amount"] == 1620.0
        assert body["result"]["higher_rate_relief"] == 720.0
        assert body["result"]["additional_rate_relief"] == 0.0

    def test_calculate_validation_error(self, client):
        response = client.post("/calculate/workplace-pension", json={
            "current_age": 50,
            "retirement_age": 45,
            "current_pot_value": 0,
            "monthly_contribution": 100,
        })

        assert response.status_code == 400
        body = response.get_json()
        assert body["status"] == "validation_failed"
        assert body["field"] == "retirement_age"

    def test_calculate_unknown_type(self, client):
        response = client.post("/calculate/crypto", json={})
        assert response.status_code == 400

    def test_invalid_json(self, client):
        response = client.post("/calculate/sipp", data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert response.get_json()["status"] == "failed"

    def test_journey_complete_then_evaluate(self, client):
        completed = client.post("/journey/complete", json={
            "calculator_type": "state-pension",
            "inputs": STATE_PENSION_INPUT,
        }).get_json()

        state = completed["state"]
        state["profile"] = {"email": "sam@example.com"}
        evaluated = client.post("/journey/evaluate", json=state).get_json()

        assert evaluated["state"]["leadScore"] == 23
        assert evaluated["gate"]["tier"] == 1
        assert evaluated["gate"]["shouldShowGate"] is False

    def test_journey_evaluate_bad_state(self, client):
        response = client.post("/journey/evaluate", json={"profile": {}})
        assert response.status_code == 400

    def test_journey_evaluate_bad_number(self, client):
        response = client.post("/journey/evaluate", json={
            "userId": "user_1",
            "createdAt": "2025-03-01T09:30:00.000Z",
            "profile": {"income": "abc"},
        })
        assert response.status_code == 400
        assert response.get_json()["status"] == "validation_failed"
