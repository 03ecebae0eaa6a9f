"""Tests for communications, email threads, replies and forwards."""

from rexera_api.db.audit_models import AuditEventModel
from rexera_api.services.communications import reply_subject


def email_payload(workflow, **overrides) -> dict:
    payload = {
        "workflow_id": workflow.id,
        "recipient_email": "payoffs@northgate.example.com",
        "subject": "Payoff request for LN-0042",
        "body": "Please send a payoff statement good through the 30th.",
        "communication_type": "email",
        "direction": "OUTBOUND",
        "email_metadata": {
            "message_id": "<abc123@mail.rexera.com>",
            "attachments": [
                {"filename": "auth.pdf", "content_type": "application/pdf", "size": 2048}
            ],
        },
    }
    payload.update(overrides)
    return payload


def create_email(client, workflow, **overrides) -> dict:
    response = client.post("/api/communications", json=email_payload(workflow, **overrides))
    assert response.status_code == 201
    return response.json()["data"]


class TestCreateCommunication:
    def test_outbound_is_sent(self, client, workflow, hil_user):
        data = create_email(client, workflow)

        assert data["status"] == "SENT"
        assert data["sender_id"] == hil_user.id
        assert data["email_metadata"]["message_id"] == "<abc123@mail.rexera.com>"
        assert data["email_metadata"]["attachments"][0]["filename"] == "auth.pdf"

    def test_inbound_is_delivered(self, client, workflow):
        data = create_email(client, workflow, direction="INBOUND", email_metadata=None)

        assert data["status"] == "DELIVERED"
        assert data["email_metadata"] is None

    def test_phone_call_with_metadata(self, client, workflow):
        data = create_email(
            client,
            workflow,
            communication_type="phone",
            subject=None,
            email_metadata=None,
            phone_metadata={"phone_number": "+1 555 0100", "duration_seconds": 95},
        )

        assert data["phone_metadata"]["duration_seconds"] == 95

    def test_create_is_audited(self, client, db_session, workflow):
        data = create_email(client, workflow)

        event = db_session.query(AuditEventModel).filter_by(resource_id=data["id"]).one()
        assert event.event_type == "communication"
        assert event.action == "create"
        assert event.workflow_id == workflow.id

    def test_unknown_workflow_is_404(self, client, workflow):
        response = client.post(
            "/api/communications",
            json=email_payload(workflow, workflow_id="00000000-0000-4000-8000-000000000000"),
        )

        assert response.status_code == 404

    def test_invalid_recipient_is_400(self, client, workflow):
        response = client.post(
            "/api/communications", json=email_payload(workflow, recipient_email="not-an-email")
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestListAndUpdate:
    def test_filter_by_direction(self, client, workflow):
        create_email(client, workflow)
        create_email(client, workflow, direction="INBOUND")

        response = client.get(
            "/api/communications", params={"workflow_id": workflow.id, "direction": "INBOUND"}
        )

        body = response.json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["direction"] == "INBOUND"

    def test_invalid_sort_is_400(self, client):
        response = client.get("/api/communications", params={"sortBy": "body"})

        assert response.status_code == 400

    def test_mark_read(self, client, workflow):
        created = create_email(client, workflow, direction="INBOUND")

        response = client.patch(
            f"/api/communications/{created['id']}", json={"status": "READ"}
        )

        assert response.json()["data"]["status"] == "READ"

    def test_delete(self, client, workflow):
        created = create_email(client, workflow)

        assert client.delete(f"/api/communications/{created['id']}").status_code == 200
        assert client.get(f"/api/communications/{created['id']}").status_code == 404


class TestThreads:
    def test_workflow_id_is_required(self, client):
        response = client.get("/api/communications/threads")

        assert response.status_code == 400

    def test_groups_emails_by_thread(self, client, workflow):
        first = create_email(client, workflow, direction="INBOUND")
        client.post(
            f"/api/communications/{first['id']}/reply",
            json={"recipient_email": "payoffs@northgate.example.com", "body": "Thanks"},
        )
        create_email(client, workflow, subject=None, recipient_email="hoa@example.com")

        response = client.get("/api/communications/threads", params={"workflow_id": workflow.id})

        threads = {thread["thread_id"]: thread for thread in response.json()["data"]}
        assert len(threads) == 2
        conversation = threads[first["id"]]
        assert conversation["communication_count"] == 2
        assert conversation["subject"] == "Payoff request for LN-0042"
        assert conversation["participants"] == ["payoffs@northgate.example.com"]
        assert conversation["has_unread"] is True
        others = [t for key, t in threads.items() if key != first["id"]]
        assert others[0]["subject"] == "(No Subject)"


class TestReplyAndForward:
    def test_reply_subject(self):
        assert reply_subject("Payoff") == "Re: Payoff"
        assert reply_subject("RE: Payoff") == "RE: Payoff"
        assert reply_subject(None) == "Re: "

    def test_reply_carries_headers(self, client, workflow):
        original = create_email(client, workflow)

        response = client.post(
            f"/api/communications/{original['id']}/reply",
            json={
                "recipient_email": "payoffs@northgate.example.com",
                "body": "Following up",
                "include_team": True,
            },
        )

        assert response.status_code == 201
        reply = response.json()["data"]
        assert reply["subject"] == "Re: Payoff request for LN-0042"
        assert reply["thread_id"] == original["id"]
        assert reply["direction"] == "OUTBOUND"
        assert reply["metadata"]["include_team"] is True
        email = reply["email_metadata"]
        assert email["message_id"] == f"{reply['id']}@rexera.com"
        assert email["in_reply_to"] == "<abc123@mail.rexera.com>"
        assert email["email_references"] == ["<abc123@mail.rexera.com>"]

    def test_reply_to_reply_extends_references(self, client, workflow):
        original = create_email(client, workflow, email_metadata=None)
        first = client.post(
            f"/api/communications/{original['id']}/reply",
            json={"recipient_email": "a@example.com", "body": "One"},
        ).json()["data"]

        second = client.post(
            f"/api/communications/{first['id']}/reply",
            json={"recipient_email": "a@example.com", "body": "Two"},
        ).json()["data"]

        assert first["email_metadata"]["in_reply_to"] == original["id"]
        assert second["thread_id"] == original["id"]
        assert second["subject"] == "Re: Payoff request for LN-0042"
        assert second["email_metadata"]["email_references"] == [
            original["id"],
            first["email_metadata"]["message_id"],
        ]

    def test_forward_starts_new_thread(self, client, workflow):
        original = create_email(client, workflow)

        response = client.post(
            f"/api/communications/{original['id']}/forward",
            json={
                "recipient_email": "closer@firsttitle.example.com",
                "subject": "Fwd: Payoff request",
                "body": "See below",
            },
        )

        assert response.status_code == 201
        forwarded = response.json()["data"]
        assert forwarded["thread_id"] == forwarded["id"]
        assert forwarded["metadata"]["forwarded_from"] == original["id"]
        assert forwarded["email_metadata"]["attachments"][0]["filename"] == "auth.pdf"

    def test_reply_to_missing_is_404(self, client):
        response = client.post(
            "/api/communications/00000000-0000-4000-8000-000000000000/reply",
            json={"recipient_email": "a@example.com", "body": "Hi"},
        )

        assert response.status_code == 404
