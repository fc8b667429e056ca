"""Tests for AWS Lambda handler."""

import base64
import json

from lambda_handler import lambda_handler

STATE_PENSION_INPUT = {
    "date_of_birth": "1985-06-15",
    "current_age": 40,
    "ni_years": 35,
    "start_year": 2025,
}


def post(path, payload):
    return {"httpMethod": "POST", "path": path, "body": json.dumps(payload)}


class TestLambdaHandler:
    """Test the Lambda handler routes and responses."""

    def test_health_check(self):
        """GET /health returns healthy status."""
        event = {"httpMethod": "GET", "path": "/health"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"

    def test_api_info(self):
        """GET /api returns API information."""
        event = {"httpMethod": "GET", "path": "/api"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "ok"
        assert body["tax_year"] == "2025/26"
        assert "state-pension" in body["calculators"]
        assert "endpoints" in body

    def test_cors_preflight(self):
        """OPTIONS requests return CORS headers."""
        event = {"httpMethod": "OPTIONS", "path": "/calculate/state-pension"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert "Access-Control-Allow-Origin" in response["headers"]
        assert "Access-Control-Allow-Methods" in response["headers"]

    def test_not_found(self):
        """Unknown paths return 404."""
        event = {"httpMethod": "GET", "path": "/unknown"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 404

    def test_calculate_success(self):
        """POST /calculate/state-pension runs the forecaster."""
        response = lambda_handler(post("/calculate/state-pension", STATE_PENSION_INPUT), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["calculator_type"] == "state-pension"
        assert body["result"]["weekly_pension"] == 221.2
        assert body["summary"]["primaryValue"] == 11502.4

    def test_http_api_event_format(self):
        """HTTP API (v2) events carry method and path elsewhere."""
        event = {
            "rawPath": "/calculate/annuity",
            "requestContext": {"http": {"method": "POST"}},
            "body": json.dumps({"pension_pot": 100000, "age": 65}),
        }
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"])["result"]["annual_income"] == 4800.0

    def test_base64_body(self):
        """API Gateway may base64-encode the body."""
        body = base64.b64encode(json.dumps(STATE_PENSION_INPUT).encode("utf-8")).decode("ascii")
        event = {"httpMethod": "POST", "path": "/calculate/state-pension", "body": body, "isBase64Encoded": True}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 200

    def test_validation_error(self):
        """Out-of-range input returns 400 naming the field."""
        payload = dict(STATE_PENSION_INPUT, current_age=12)
        response = lambda_handler(post("/calculate/state-pension", payload), None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "validation_failed"
        assert body["field"] == "current_age"

    def test_unknown_calculator(self):
        """Unknown calculator types are client errors."""
        response = lambda_handler(post("/calculate/crypto", {"x": 1}), None)

        assert response["statusCode"] == 400
        assert "Unknown calculator type" in json.loads(response["body"])["error"]

    def test_empty_body(self):
        """Missing body returns 400."""
        event = {"httpMethod": "POST", "path": "/calculate/sipp", "body": ""}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "failed"

    def test_invalid_json(self):
        """Malformed JSON returns 400."""
        event = {"httpMethod": "POST", "path": "/calculate/sipp", "body": "{not json"}
        response = lambda_handler(event, None)

        assert response["statusCode"] == 400
        body = json.loads(response["body"])
        assert body["status"] == "failed"
        assert "Invalid JSON" in body["error"]

    def test_journey_complete(self):
        """POST /journey/complete runs a calculator and returns the new state and gate."""
        payload = {"calculator_type": "state-pension", "inputs": STATE_PENSION_INPUT}
        response = lambda_handler(post("/journey/complete", payload), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["state"]["completedCalculators"] == 1
        assert body["gate"]["tier"] == 1
        assert body["gate"]["requiredFields"] == ["email"]

    def test_journey_evaluate(self):
        """POST /journey/evaluate re-derives a client-held state."""
        state = {
            "userId": "user_1",
            "createdAt": "2025-03-01T09:30:00.000Z",
            "profile": {"email": "sam@example.com", "phone": "07700900123"},
            "hasRequestedConsultation": True,
        }
        response = lambda_handler(post("/journey/evaluate", state), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["state"]["temperature"] == "hot"
        assert body["gate"]["tier"] == 4
        assert body["gate"]["shouldShowGate"] is True

    def test_journey_evaluate_bad_state(self):
        """A state without userId is a client error."""
        response = lambda_handler(post("/journey/evaluate", {"profile": {}}), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "validation_failed"

    def test_journey_evaluate_bad_number(self):
        """A non-numeric income in the client state is a client error."""
        state = {"userId": "user_1", "createdAt": "2025-03-01T09:30:00.000Z", "profile": {"income": "abc"}}
        response = lambda_handler(post("/journey/evaluate", state), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["status"] == "validation_failed"
