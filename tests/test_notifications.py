"""Tests for /api/notifications."""

import pytest

from rexera_api.db.audit_models import AuditEventModel
from rexera_api.db.models import NotificationModel


def add_notification(db, user, **overrides) -> NotificationModel:
    values = {
        "user_id": user.id,
        "type": "WORKFLOW_UPDATE",
        "priority": "NORMAL",
        "title": "Workflow updated",
        "message": "Payoff for 123 Main St moved to IN_PROGRESS",
        "read": False,
    }
    values.update(overrides)
    notification = NotificationModel(**values)
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


@pytest.fixture
def inbox(db_session, hil_user, second_hil_user):
    return [
        add_notification(db_session, hil_user),
        add_notification(db_session, hil_user, type="TASK_INTERRUPT", priority="URGENT"),
        add_notification(db_session, hil_user, read=True),
        add_notification(db_session, second_hil_user),
    ]


class TestListing:
    def test_only_own_notifications(self, client, inbox):
        body = client.get("/api/notifications").json()

        assert len(body["data"]) == 3
        assert body["pagination"]["limit"] == 100
        assert body["pagination"]["total"] == 3

    def test_filter_unread_and_type(self, client, inbox):
        body = client.get(
            "/api/notifications", params={"read": "false", "type": "TASK_INTERRUPT"}
        ).json()

        assert [n["priority"] for n in body["data"]] == ["URGENT"]

    def test_stats(self, client, inbox):
        body = client.get("/api/notifications/stats").json()

        assert body["data"] == {"total": 3, "unread": 2, "urgent": 1, "taskInterrupts": 1}


class TestReadState:
    def test_mark_read(self, client, inbox):
        target = inbox[0]

        response = client.patch(f"/api/notifications/{target.id}/read")

        data = response.json()["data"]
        assert data["read"] is True
        assert data["read_at"] is not None

    def test_mark_unread_clears_read_at(self, client, inbox):
        target = inbox[2]

        response = client.patch(f"/api/notifications/{target.id}", json={"read": False})

        data = response.json()["data"]
        assert data["read"] is False
        assert data["read_at"] is None

    def test_mark_all_read(self, client, db_session, inbox, second_hil_user):
        response = client.patch("/api/notifications/mark-all-read")

        assert response.json()["data"] == {"updated_count": 2}
        db_session.expire_all()
        other = db_session.query(NotificationModel).filter_by(user_id=second_hil_user.id).one()
        assert other.read is False

    def test_other_users_notification_is_404(self, client, inbox):
        foreign = inbox[3]

        assert client.get(f"/api/notifications/{foreign.id}").status_code == 404
        assert client.delete(f"/api/notifications/{foreign.id}").status_code == 404

    def test_delete(self, client, inbox):
        response = client.delete(f"/api/notifications/{inbox[0].id}")

        assert response.status_code == 200
        assert client.get(f"/api/notifications/{inbox[0].id}").status_code == 404


class TestCreate:
    def test_hil_user_creates_and_is_audited(self, client, db_session, hil_user, second_hil_user):
        response = client.post(
            "/api/notifications",
            json={
                "user_id": second_hil_user.id,
                "type": "CLIENT_MESSAGE_RECEIVED",
                "priority": "HIGH",
                "title": "New client message",
                "message": "First Title Co. asked for a status update",
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == second_hil_user.id
        assert data["read"] is False
        event = db_session.query(AuditEventModel).one()
        assert event.event_type == "notification"
        assert event.event_data["recipient_id"] == second_hil_user.id

    def test_client_user_is_forbidden(self, client, login_as, client_user, hil_user):
        login_as(client_user)

        response = client.post(
            "/api/notifications",
            json={
                "user_id": hil_user.id,
                "type": "WORKFLOW_UPDATE",
                "priority": "LOW",
                "title": "x",
                "message": "y",
            },
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"
