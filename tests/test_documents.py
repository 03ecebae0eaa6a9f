"""Tests for documents, document versions and the tag vocabulary."""

from rexera_api.db.audit_models import AuditEventModel
from rexera_api.services.documents import PREDEFINED_TAGS, parse_tags, search_tags


def create_document(client, workflow, **overrides) -> dict:
    payload = {
        "workflow_id": workflow.id,
        "filename": "payoff-statement.pdf",
        "url": "https://files.rexera.example.com/payoff-statement.pdf",
        "file_size_bytes": 40960,
        "mime_type": "application/pdf",
        "tags": ["closing", "urgent"],
    }
    payload.update(overrides)
    response = client.post("/api/documents", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestDocuments:
    def test_create_defaults(self, client, workflow, hil_user):
        data = create_document(client, workflow)

        assert data["document_type"] == "WORKING"
        assert data["status"] == "PENDING"
        assert data["version"] == 1
        assert data["created_by"] == hil_user.id

    def test_create_for_unknown_workflow_is_404(self, client, workflow):
        response = client.post(
            "/api/documents",
            json={
                "workflow_id": "00000000-0000-4000-8000-000000000000",
                "filename": "x.pdf",
                "url": "https://files.example.com/x.pdf",
            },
        )

        assert response.status_code == 404

    def test_non_http_url_is_400(self, client, workflow):
        response = client.post(
            "/api/documents",
            json={"workflow_id": workflow.id, "filename": "x.pdf", "url": "ftp://x/y.pdf"},
        )

        assert response.status_code == 400

    def test_tag_filter_matches_any_tag(self, client, workflow):
        create_document(client, workflow, filename="a.pdf", tags=["deed"])
        create_document(client, workflow, filename="b.pdf", tags=["urgent", "title"])
        create_document(client, workflow, filename="c.pdf", tags=["survey"])

        response = client.get("/api/documents", params={"tags": "deed,title"})

        body = response.json()
        assert body["pagination"]["total"] == 2
        assert {doc["filename"] for doc in body["data"]} == {"a.pdf", "b.pdf"}

    def test_by_workflow_returns_count(self, client, workflow):
        create_document(client, workflow, document_type="DELIVERABLE")
        create_document(client, workflow)

        response = client.get(
            f"/api/documents/by-workflow/{workflow.id}",
            params={"document_type": "DELIVERABLE"},
        )

        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["document_type"] == "DELIVERABLE"

    def test_update_and_include_workflow(self, client, workflow):
        created = create_document(client, workflow)

        client.patch(
            f"/api/documents/{created['id']}", json={"status": "COMPLETED", "tags": ["final"]}
        )
        response = client.get(f"/api/documents/{created['id']}", params={"include": "workflow"})

        data = response.json()["data"]
        assert data["status"] == "COMPLETED"
        assert data["tags"] == ["final"]
        assert data["workflow"]["id"] == workflow.id

    def test_delete_is_audited(self, client, db_session, workflow):
        created = create_document(client, workflow)

        response = client.delete(f"/api/documents/{created['id']}")

        assert response.status_code == 200
        actions = [
            event.action
            for event in db_session.query(AuditEventModel).filter_by(resource_id=created["id"])
        ]
        assert sorted(actions) == ["create", "delete"]


class TestDocumentVersions:
    def test_new_version_bumps_and_merges_metadata(self, client, workflow):
        created = create_document(client, workflow, metadata={"source": "lender"})

        response = client.post(
            f"/api/documents/{created['id']}/versions",
            json={
                "url": "https://files.rexera.example.com/payoff-statement-v2.pdf",
                "change_summary": "Corrected per diem",
                "metadata": {"reviewed": True},
            },
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["version"] == 2
        assert data["url"].endswith("-v2.pdf")
        assert data["change_summary"] == "Corrected per diem"
        assert data["filename"] == "payoff-statement.pdf"
        assert data["metadata"] == {"source": "lender", "reviewed": True}

    def test_change_summary_required(self, client, workflow):
        created = create_document(client, workflow)

        response = client.post(
            f"/api/documents/{created['id']}/versions",
            json={"url": "https://files.rexera.example.com/v2.pdf"},
        )

        assert response.status_code == 400


class TestTags:
    def test_vocabulary_is_sorted(self):
        assert PREDEFINED_TAGS == sorted(PREDEFINED_TAGS)
        assert "hoa-docs" in PREDEFINED_TAGS

    def test_search_is_case_insensitive(self):
        assert search_tags("CLIENT") == ["client-copy", "client-review", "client-signature"]

    def test_parse_tags(self):
        assert parse_tags(" deed, ,title ") == ["deed", "title"]
        assert parse_tags(None) == []

    def test_list_tags(self, client):
        body = client.get("/api/tags").json()

        assert body["data"] == PREDEFINED_TAGS
        assert body["count"] == len(PREDEFINED_TAGS)

    def test_search_endpoint(self, client):
        body = client.get("/api/tags/search", params={"q": "closing"}).json()

        assert body["data"] == ["closing", "closing-prep", "post-closing"]
        assert body["count"] == 3

    def test_search_requires_query(self, client):
        response = client.get("/api/tags/search")

        assert response.status_code == 400
        assert response.json()["error"]["message"] == (
            'Query parameter "q" is required and must be 1-50 characters'
        )

    def test_search_rejects_long_query(self, client):
        response = client.get("/api/tags/search", params={"q": "x" * 51})

        assert response.status_code == 400
