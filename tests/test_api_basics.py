"""Health endpoints, error envelopes, middleware and shared primitives."""

from rexera_api.primitives import (
    format_workflow_id,
    format_workflow_id_with_type,
    is_counterparty_allowed_for_workflow,
    is_uuid,
)


def test_api_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Rexera API is running"
    assert data["environment"]
    assert isinstance(data["version"], str)


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "db": "ok"}


def test_version(client):
    response = client.get("/version")

    assert response.status_code == 200
    assert isinstance(response.json()["version"], str)


def test_security_headers(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-XSS-Protection"] == "1; mode=block"
    assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/does-not-exist", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["message"] == "The requested endpoint was not found"
    assert body["error"]["requestId"] == "req-123"
    assert "timestamp" in body["error"]


def test_validation_error_details(client, company):
    response = client.post("/api/workflows", json={"client_id": company.id})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    fields = {item["field"] for item in error["details"]}
    assert {"workflow_type", "title"} <= fields
    assert all(set(item) == {"field", "message", "code"} for item in error["details"])


class TestPrimitives:
    def test_format_workflow_id(self):
        assert format_workflow_id("58948339-cf90-42f8-b75f-a264fef17152") == "FEF1-7152"
        assert format_workflow_id("") == "UNKNOWN"

    def test_format_with_type(self):
        workflow_id = "58948339-cf90-42f8-b75f-a264fef17152"

        assert format_workflow_id_with_type(workflow_id, "PAYOFF_REQUEST") == "PAY-FEF1-7152"
        assert format_workflow_id_with_type(workflow_id, "MUNI_LIEN_SEARCH") == "MUNI-FEF1-7152"
        assert format_workflow_id_with_type(workflow_id, "OTHER") == "WF-FEF1-7152"

    def test_counterparty_rules(self):
        assert is_counterparty_allowed_for_workflow("lender", "PAYOFF_REQUEST")
        assert is_counterparty_allowed_for_workflow("utility", "MUNI_LIEN_SEARCH")
        assert not is_counterparty_allowed_for_workflow("lender", "HOA_ACQUISITION")

    def test_is_uuid(self):
        assert is_uuid("58948339-CF90-42F8-B75F-A264FEF17152")
        assert not is_uuid("1000")
