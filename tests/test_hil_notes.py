"""Tests for HIL notes and mention notifications."""

from rexera_api.db.models import HilNoteModel, NotificationModel


def create_note(client, workflow, **overrides) -> dict:
    payload = {"workflow_id": workflow.id, "content": "Lender wants a signed authorization"}
    payload.update(overrides)
    response = client.post("/api/hil-notes", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCreateNote:
    def test_create_includes_author(self, client, workflow, hil_user):
        data = create_note(client, workflow, priority="HIGH")

        assert data["priority"] == "HIGH"
        assert data["is_resolved"] is False
        assert data["author"]["email"] == hil_user.email

    def test_mentions_notify_existing_users(
        self, client, db_session, workflow, hil_user, second_hil_user
    ):
        create_note(
            client,
            workflow,
            mentions=[second_hil_user.id, "00000000-0000-4000-8000-000000000000"],
        )

        notification = db_session.query(NotificationModel).one()
        assert notification.user_id == second_hil_user.id
        assert notification.type == "HIL_MENTION"
        assert notification.title == "You were mentioned in a note"

    def test_unknown_workflow_is_404(self, client):
        response = client.post(
            "/api/hil-notes",
            json={"workflow_id": "00000000-0000-4000-8000-000000000000", "content": "x"},
        )

        assert response.status_code == 404

    def test_unknown_parent_is_404(self, client, workflow):
        response = client.post(
            "/api/hil-notes",
            json={
                "workflow_id": workflow.id,
                "content": "x",
                "parent_note_id": "00000000-0000-4000-8000-000000000000",
            },
        )

        assert response.status_code == 404


class TestListNotes:
    def test_workflow_id_required(self, client):
        response = client.get("/api/hil-notes")

        assert response.status_code == 400

    def test_top_level_only_with_replies(self, client, workflow, hil_user):
        parent = create_note(client, workflow)
        client.post(f"/api/hil-notes/{parent['id']}/reply", json={"content": "Sent it"})
        create_note(client, workflow, content="Second thread")

        response = client.get(
            "/api/hil-notes", params={"workflow_id": workflow.id, "include": "replies"}
        )

        body = response.json()
        assert body["pagination"] == {"limit": 50, "offset": 0, "total": 2}
        first = body["data"][0]
        assert first["id"] == parent["id"]
        assert [reply["content"] for reply in first["replies"]] == ["Sent it"]

    def test_filter_resolved(self, client, workflow, hil_user):
        note = create_note(client, workflow)
        create_note(client, workflow, content="Open")
        client.patch(f"/api/hil-notes/{note['id']}", json={"is_resolved": True})

        response = client.get(
            "/api/hil-notes", params={"workflow_id": workflow.id, "is_resolved": "false"}
        )

        assert [n["content"] for n in response.json()["data"]] == ["Open"]


class TestReplies:
    def test_reply_inherits_priority(self, client, db_session, workflow, hil_user, second_hil_user):
        parent = create_note(client, workflow, priority="URGENT")

        response = client.post(
            f"/api/hil-notes/{parent['id']}/reply",
            json={"content": "On it", "mentions": [second_hil_user.id]},
        )

        assert response.status_code == 201
        reply = response.json()["data"]
        assert reply["priority"] == "URGENT"
        assert reply["parent_note_id"] == parent["id"]
        assert reply["workflow_id"] == workflow.id
        notification = db_session.query(NotificationModel).one()
        assert notification.title == "You were mentioned in a note reply"
        assert notification.priority == "URGENT"


class TestAuthorOnlyChanges:
    def test_author_can_update(self, client, workflow, hil_user):
        note = create_note(client, workflow)

        response = client.patch(
            f"/api/hil-notes/{note['id']}", json={"content": "Authorization received"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["content"] == "Authorization received"

    def test_update_notifies_new_mentions_only(
        self, client, db_session, workflow, hil_user, second_hil_user
    ):
        note = create_note(client, workflow, mentions=[hil_user.id])

        client.patch(
            f"/api/hil-notes/{note['id']}",
            json={"mentions": [hil_user.id, second_hil_user.id]},
        )

        titles = {
            (n.user_id, n.title) for n in db_session.query(NotificationModel).all()
        }
        assert titles == {
            (hil_user.id, "You were mentioned in a note"),
            (second_hil_user.id, "You were mentioned in an updated note"),
        }

    def test_non_author_cannot_update_or_delete(
        self, client, db_session, workflow, hil_user, second_hil_user
    ):
        note = HilNoteModel(
            workflow_id=workflow.id,
            author_id=second_hil_user.id,
            content="Not yours",
            priority="NORMAL",
            mentions=[],
        )
        db_session.add(note)
        db_session.commit()

        patched = client.patch(f"/api/hil-notes/{note.id}", json={"content": "Mine now"})
        deleted = client.delete(f"/api/hil-notes/{note.id}")

        assert patched.status_code == 403
        assert deleted.status_code == 403

    def test_delete_removes_replies(self, client, db_session, workflow, hil_user):
        parent = create_note(client, workflow)
        client.post(f"/api/hil-notes/{parent['id']}/reply", json={"content": "Reply"})

        response = client.delete(f"/api/hil-notes/{parent['id']}")

        assert response.status_code == 200
        assert db_session.query(HilNoteModel).count() == 0
