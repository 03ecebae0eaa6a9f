"""Tests for the n8n REST client and the workflow n8n routes."""

import json

import httpx
import pytest
from conftest import make_workflow

from rexera_api.api import app
from rexera_api.db.models import WorkflowModel
from rexera_api.integrations.n8n import N8nApiError, N8nClient, N8nError, get_n8n_client

BASE_URL = "https://n8n.example.com"


def make_client(handler, **kwargs) -> N8nClient:
    return N8nClient(
        base_url=kwargs.pop("base_url", BASE_URL),
        api_key=kwargs.pop("api_key", "test-key"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class Recorder:
    """MockTransport handler that records requests and replays a fixed response."""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)


class TestConfiguration:
    def test_enabled_needs_key_and_url(self):
        assert N8nClient(BASE_URL, "key").enabled
        assert not N8nClient(BASE_URL, "").enabled
        assert not N8nClient("", "key").enabled

    def test_config_status(self):
        client = N8nClient(
            BASE_URL + "/", "key", payoff_workflow_id="wf-9", webhook_url="https://api/hook"
        )

        assert client.config_status() == {
            "enabled": True,
            "baseUrl": BASE_URL,
            "hasApiKey": True,
            "hasWebhookUrl": True,
            "payoffWorkflowId": "wf-9",
        }

    async def test_disabled_client_raises(self):
        client = N8nClient("", "")

        with pytest.raises(N8nError) as exc_info:
            await client.get_execution("1")

        assert exc_info.value.code == "N8N_DISABLED"


class TestRequests:
    async def test_trigger_payoff_workflow(self):
        recorder = Recorder(body={"id": "exec-42"})
        client = make_client(
            recorder, payoff_workflow_id="wf-9", webhook_url="https://api.example.com/hook"
        )

        execution = await client.trigger_payoff_workflow(
            "wf-uuid", "PAYOFF_REQUEST", "client-uuid", {"loan_number": "LN-1"}
        )

        assert execution == {"id": "exec-42"}
        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/api/v1/workflows/wf-9/execute"
        assert request.headers["X-N8N-API-KEY"] == "test-key"
        payload = json.loads(request.content)
        assert payload["rexeraWorkflowId"] == "wf-uuid"
        assert payload["webhookUrl"] == "https://api.example.com/hook"
        assert payload["metadata"] == {"loan_number": "LN-1"}

    async def test_default_payoff_workflow_id(self):
        recorder = Recorder(body={"id": "1"})

        await make_client(recorder).trigger_payoff_workflow("a", "PAYOFF_REQUEST", "b")

        assert recorder.requests[0].url.path == "/api/v1/workflows/payoff-workflow/execute"

    async def test_get_execution_is_reduced(self):
        recorder = Recorder(
            body={
                "id": "exec-42",
                "status": "error",
                "finished": True,
                "startedAt": "2026-01-01T00:00:00Z",
                "stoppedAt": "2026-01-01T00:01:00Z",
                "data": {"resultData": {"error": {"message": "boom"}}},
                "workflowData": {"nodes": []},
            }
        )

        execution = await make_client(recorder).get_execution("exec-42")

        assert execution == {
            "id": "exec-42",
            "status": "error",
            "finished": True,
            "startedAt": "2026-01-01T00:00:00Z",
            "stoppedAt": "2026-01-01T00:01:00Z",
            "error": {"message": "boom"},
        }

    async def test_cancel_execution(self):
        recorder = Recorder()

        assert await make_client(recorder).cancel_execution("exec-42") is True
        assert recorder.requests[0].url.path == "/api/v1/executions/exec-42/stop"

    async def test_error_status_raises_api_error(self):
        recorder = Recorder(status_code=404, body={"message": "Execution not found"})

        with pytest.raises(N8nApiError) as exc_info:
            await make_client(recorder).get_execution("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.data == {"message": "Execution not found"}
        assert "Execution not found" in str(exc_info.value)

    async def test_connection_error_raises_n8n_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(N8nError) as exc_info:
            await make_client(handler).get_workflow("wf-9")

        assert exc_info.value.code == "N8N_CONNECTION_ERROR"

    async def test_test_connection(self):
        assert await make_client(Recorder(body={"data": []})).test_connection() is True
        assert await make_client(Recorder(status_code=401)).test_connection() is False
        assert await N8nClient("", "").test_connection() is False


@pytest.fixture
def n8n_override():
    """Route the API's n8n dependency to a client backed by a recorder."""

    def _override(recorder: Recorder) -> Recorder:
        app.dependency_overrides[get_n8n_client] = lambda: make_client(recorder)
        return recorder

    yield _override
    app.dependency_overrides.pop(get_n8n_client, None)


class TestWorkflowN8nRoutes:
    def test_create_payoff_starts_execution(self, client, company, n8n_override):
        recorder = n8n_override(Recorder(body={"id": "exec-7"}))

        response = client.post(
            "/api/workflows",
            json={"workflow_type": "PAYOFF_REQUEST", "client_id": company.id, "title": "Payoff"},
        )

        data = response.json()["data"]
        assert data["n8n_execution_id"] == "exec-7"
        assert data["n8n_status"] == "running"
        assert len(recorder.requests) == 1

    def test_create_hoa_does_not_trigger(self, client, company, n8n_override):
        recorder = n8n_override(Recorder(body={"id": "exec-7"}))

        client.post(
            "/api/workflows",
            json={"workflow_type": "HOA_ACQUISITION", "client_id": company.id, "title": "HOA"},
        )

        assert recorder.requests == []

    def test_trigger_failure_still_creates(self, client, company, n8n_override):
        n8n_override(Recorder(status_code=500, body={"message": "down"}))

        response = client.post(
            "/api/workflows",
            json={"workflow_type": "PAYOFF_REQUEST", "client_id": company.id, "title": "Payoff"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["n8n_status"] == "not_started"

    def test_status_includes_execution(self, client, db_session, company, n8n_override):
        workflow = make_workflow(
            db_session, company, n8n_execution_id="exec-7", n8n_status="running"
        )
        n8n_override(Recorder(body={"id": "exec-7", "status": "running", "finished": False}))

        data = client.get(f"/api/workflows/{workflow.id}/n8n-status").json()["data"]

        assert data["n8nEnabled"] is True
        assert data["n8nStatus"] == "running"
        assert data["n8nExecution"]["status"] == "running"

    def test_status_reports_fetch_error(self, client, db_session, company, n8n_override):
        workflow = make_workflow(db_session, company, n8n_execution_id="exec-7")
        n8n_override(Recorder(status_code=404, body={"message": "gone"}))

        data = client.get(f"/api/workflows/{workflow.id}/n8n-status").json()["data"]

        assert "gone" in data["n8nError"]

    def test_cancel(self, client, db_session, company, n8n_override):
        workflow = make_workflow(
            db_session, company, n8n_execution_id="exec-7", n8n_status="running"
        )
        n8n_override(Recorder())

        response = client.post(f"/api/workflows/{workflow.id}/cancel-n8n")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(WorkflowModel, workflow.id).n8n_status == "canceled"

    def test_cancel_without_execution_is_400(self, client, workflow, n8n_override):
        n8n_override(Recorder())

        response = client.post(f"/api/workflows/{workflow.id}/cancel-n8n")

        assert response.status_code == 400

    def test_cancel_when_disabled_is_400(self, client, workflow):
        response = client.post(f"/api/workflows/{workflow.id}/cancel-n8n")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "n8n integration is not enabled"
