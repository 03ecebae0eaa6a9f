"""Tests for /api/audit-events and the audit service."""

from datetime import timedelta

from conftest import make_workflow
from sqlalchemy.exc import SQLAlchemyError

from rexera_api.db.audit_models import AuditEventModel
from rexera_api.db.audit_service import AuditService
from rexera_api.primitives import utc_now


def event_payload(**overrides) -> dict:
    payload = {
        "actor_type": "agent",
        "actor_id": "iris",
        "actor_name": "Iris",
        "event_type": "task_execution",
        "action": "execute",
        "resource_type": "task_execution",
        "resource_id": "task-1",
        "event_data": {"pages": 3},
    }
    payload.update(overrides)
    return payload


class TestCreate:
    def test_create(self, client):
        response = client.post("/api/audit-events", json=event_payload())

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["actor_type"] == "agent"
        assert data["event_data"] == {"pages": 3}
        assert len(data["id"]) == 26

    def test_invalid_actor_type(self, client):
        response = client.post("/api/audit-events", json=event_payload(actor_type="robot"))

        assert response.status_code == 400

    def test_batch(self, client, db_session):
        response = client.post(
            "/api/audit-events/batch",
            json=[event_payload(resource_id="a"), event_payload(resource_id="b")],
        )

        assert response.status_code == 201
        assert response.json()["data"] == {"count": 2}
        assert db_session.query(AuditEventModel).count() == 2

    def test_batch_must_be_array(self, client):
        response = client.post("/api/audit-events/batch", json=event_payload())

        assert response.status_code == 400

    def test_batch_with_invalid_utf8_is_400(self, client):
        response = client.post(
            "/api/audit-events/batch",
            content=b"[\xff]",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_batch_with_invalid_item_writes_nothing(self, client, db_session):
        response = client.post(
            "/api/audit-events/batch",
            json=[event_payload(), event_payload(action="explode")],
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "Invalid audit events in batch"
        assert [item["index"] for item in error["details"]] == [1]
        assert db_session.query(AuditEventModel).count() == 0


class TestQueries:
    def test_list_pagination(self, client):
        for index in range(3):
            client.post("/api/audit-events", json=event_payload(resource_id=f"r{index}"))

        body = client.get("/api/audit-events", params={"per_page": 2}).json()

        assert len(body["data"]) == 2
        assert body["pagination"] == {
            "page": 1,
            "per_page": 2,
            "total": 3,
            "total_pages": 2,
            "has_next": True,
            "has_prev": False,
        }

    def test_list_filters(self, client):
        client.post("/api/audit-events", json=event_payload())
        client.post(
            "/api/audit-events",
            json=event_payload(actor_type="system", actor_id="n8n", action="update"),
        )

        body = client.get("/api/audit-events", params={"actor_type": "system"}).json()

        assert [event["actor_id"] for event in body["data"]] == ["n8n"]

    def test_stats(self, client):
        client.post("/api/audit-events", json=event_payload())
        client.post("/api/audit-events", json=event_payload(actor_type="human", actor_id="u1"))

        data = client.get("/api/audit-events/stats").json()["data"]

        assert data["total_events"] == 2
        assert data["events_by_type"] == {"task_execution": 2}
        assert data["events_by_actor"] == {"agent": 1, "human": 1}
        assert data["period"] == "24_hours"

    def test_stats_window_excludes_old_events(self, db_session):
        service = AuditService(db_session)
        service.create(event_payload())

        stats = service.stats(hours=24, now=utc_now() + timedelta(days=2))

        assert stats["total_events"] == 0

    def test_workflow_trail(self, client, workflow):
        client.post("/api/audit-events", json=event_payload(workflow_id=workflow.id))
        client.post("/api/audit-events", json=event_payload())

        data = client.get(f"/api/audit-events/workflow/{workflow.id}").json()["data"]

        assert data["workflow_id"] == workflow.id
        assert len(data["audit_trail"]) == 1

    def test_unknown_workflow_trail_is_404(self, client):
        response = client.get("/api/audit-events/workflow/00000000-0000-4000-8000-000000000000")

        assert response.status_code == 404

    def test_workflow_trail_requires_uuid(self, client):
        response = client.get("/api/audit-events/workflow/1000")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid workflow ID format"


class TestCompanyScoping:
    def test_client_user_cannot_read_foreign_trail(
        self, client, db_session, other_company, login_as, client_user
    ):
        foreign = make_workflow(db_session, other_company)
        client.post(
            "/api/audit-events",
            json=event_payload(workflow_id=foreign.id, client_id=other_company.id),
        )
        login_as(client_user)

        response = client.get(f"/api/audit-events/workflow/{foreign.id}")

        assert response.status_code == 404

    def test_client_user_reads_own_trail(
        self, client, db_session, company, login_as, client_user
    ):
        own = make_workflow(db_session, company)
        client.post(
            "/api/audit-events", json=event_payload(workflow_id=own.id, client_id=company.id)
        )
        login_as(client_user)

        data = client.get(f"/api/audit-events/workflow/{own.id}").json()["data"]

        assert len(data["audit_trail"]) == 1

    def test_stats_count_only_own_company(
        self, client, company, other_company, login_as, client_user
    ):
        client.post("/api/audit-events", json=event_payload(client_id=company.id))
        client.post("/api/audit-events", json=event_payload(client_id=other_company.id))
        client.post("/api/audit-events", json=event_payload(client_id=other_company.id))
        login_as(client_user)

        data = client.get("/api/audit-events/stats").json()["data"]

        assert data["total_events"] == 1
        assert data["events_by_actor"] == {"agent": 1}


class TestBestEffortLogging:
    def test_log_swallows_database_errors(self, db_session, monkeypatch):
        service = AuditService(db_session)

        def broken_create(event):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(service, "create", broken_create)

        assert service.log(event_payload()) is None

    def test_log_batch_empty(self, db_session):
        assert AuditService(db_session).log_batch([]) == 0
