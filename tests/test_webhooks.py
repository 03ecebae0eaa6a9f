"""Tests for the n8n webhook endpoint."""

from conftest import make_task

from rexera_api.db.audit_models import AuditEventModel
from rexera_api.db.models import NotificationModel, TaskExecutionModel, WorkflowModel

WEBHOOK_URL = "/api/webhooks/n8n"


def reload(db_session, model, row_id):
    db_session.expire_all()
    return db_session.get(model, row_id)


class TestWorkflowEvents:
    def test_workflow_completed(self, client, db_session, workflow):
        response = client.post(
            WEBHOOK_URL,
            json={
                "eventType": "workflow_completed",
                "data": {"workflowId": workflow.id, "result": {"payoff_amount": 1234.5}},
            },
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Processed workflow_completed event successfully",
        }
        stored = reload(db_session, WorkflowModel, workflow.id)
        assert stored.status == "COMPLETED"
        assert stored.completed_at is not None
        assert stored.metadata_["n8n_result"] == {"payoff_amount": 1234.5}
        assert "n8n_completed_at" in stored.metadata_

    def test_workflow_failed_blocks_workflow(self, client, db_session, workflow):
        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "workflow_failed",
                "data": {"workflowId": workflow.id, "error": "Lender portal timeout"},
            },
        )

        stored = reload(db_session, WorkflowModel, workflow.id)
        assert stored.status == "BLOCKED"
        assert stored.metadata_["n8n_error"] == "Lender portal timeout"
        assert stored.metadata_["escalation_reason"] == "n8n workflow execution failed"

    def test_error_occurred_records_node(self, client, db_session, workflow):
        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "error_occurred",
                "data": {"workflowId": workflow.id, "error": "boom", "nodeId": "HTTP Request"},
            },
        )

        stored = reload(db_session, WorkflowModel, workflow.id)
        assert stored.status == "BLOCKED"
        assert stored.metadata_["n8n_error_node"] == "HTTP Request"

    def test_workflow_event_is_audited_as_system(self, client, db_session, workflow):
        client.post(
            WEBHOOK_URL,
            json={"eventType": "workflow_completed", "data": {"workflowId": workflow.id}},
        )

        event = db_session.query(AuditEventModel).one()
        assert event.actor_type == "system"
        assert event.actor_id == "n8n"
        assert event.event_data == {"previous_status": "PENDING", "new_status": "COMPLETED"}

    def test_unknown_workflow_is_ignored(self, client):
        response = client.post(
            WEBHOOK_URL,
            json={
                "eventType": "workflow_completed",
                "data": {"workflowId": "00000000-0000-4000-8000-000000000000"},
            },
        )

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestTaskEvents:
    def test_task_completed_writes_output(self, client, db_session, workflow):
        task = make_task(db_session, workflow, status="IN_PROGRESS")

        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "task_completed",
                "data": {"taskId": task.id, "result": {"document_url": "https://x.test/a.pdf"}},
            },
        )

        stored = reload(db_session, TaskExecutionModel, task.id)
        assert stored.status == "COMPLETED"
        assert stored.completed_at is not None
        assert stored.output_data["n8n_result"] == {"document_url": "https://x.test/a.pdf"}
        assert reload(db_session, WorkflowModel, workflow.id).status == "COMPLETED"

    def test_task_failed_sets_error_message(self, client, db_session, workflow):
        task = make_task(db_session, workflow, status="IN_PROGRESS")

        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "task_failed",
                "data": {"taskId": task.id, "error": {"message": "Portal rejected login"}},
            },
        )

        stored = reload(db_session, TaskExecutionModel, task.id)
        assert stored.status == "FAILED"
        assert stored.error_message == "Portal rejected login"

    def test_completed_task_can_be_failed_by_orchestrator(self, client, db_session, workflow):
        task = make_task(db_session, workflow, status="COMPLETED")

        client.post(
            WEBHOOK_URL,
            json={"eventType": "task_failed", "data": {"taskId": task.id}},
        )

        assert reload(db_session, TaskExecutionModel, task.id).status == "FAILED"

    def test_agent_task_completed(self, client, db_session, workflow):
        task = make_task(db_session, workflow, status="IN_PROGRESS")

        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "agent_task_completed",
                "data": {
                    "taskId": task.id,
                    "agentName": "iris",
                    "result": {"pages": 3},
                    "executionTime": 1520,
                },
            },
        )

        stored = reload(db_session, TaskExecutionModel, task.id)
        assert stored.status == "COMPLETED"
        assert stored.execution_time_ms == 1520
        assert stored.output_data["agent_name"] == "iris"
        assert stored.output_data["agent_result"] == {"pages": 3}

    def test_agent_task_failed_notifies_hil_users(self, client, db_session, workflow, hil_user):
        task = make_task(db_session, workflow, status="IN_PROGRESS")

        client.post(
            WEBHOOK_URL,
            json={
                "eventType": "agent_task_failed",
                "data": {"taskId": task.id, "agentName": "rex", "error": "Captcha"},
            },
        )

        assert reload(db_session, TaskExecutionModel, task.id).status == "FAILED"
        notification = db_session.query(NotificationModel).one()
        assert notification.type == "AGENT_FAILURE"
        assert notification.title == "Agent rex failed"
        assert notification.user_id == hil_user.id

    def test_agent_event_without_agent_name_is_ignored(self, client, db_session, workflow):
        task = make_task(db_session, workflow, status="IN_PROGRESS")

        response = client.post(
            WEBHOOK_URL,
            json={"eventType": "agent_task_completed", "data": {"taskId": task.id}},
        )

        assert response.status_code == 200
        assert reload(db_session, TaskExecutionModel, task.id).status == "IN_PROGRESS"


class TestInvalidPayloads:
    def test_unknown_event_type_is_400(self, client):
        response = client.post(WEBHOOK_URL, json={"eventType": "nonsense", "data": {}})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid webhook payload"

    def test_missing_data_is_400(self, client):
        response = client.post(WEBHOOK_URL, json={"eventType": "workflow_completed"})

        assert response.status_code == 400

    def test_malformed_json_is_400(self, client):
        response = client.post(
            WEBHOOK_URL, content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_non_object_metadata_is_400(self, client, db_session, workflow):
        response = client.post(
            WEBHOOK_URL,
            json={
                "eventType": "workflow_completed",
                "data": {"workflowId": workflow.id, "metadata": "oops"},
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid webhook payload"
        assert reload(db_session, WorkflowModel, workflow.id).status == "PENDING"

    def test_invalid_utf8_body_is_400(self, client):
        response = client.post(
            WEBHOOK_URL,
            content=b'{"eventType": "\xff"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_get_is_not_allowed(self, client):
        response = client.get(WEBHOOK_URL)

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "HTTP_405"
