"""Tests for SLA breach detection and the cron endpoint."""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import make_task

from rexera_api.config import get_settings
from rexera_api.db.models import NotificationModel, TaskExecutionModel
from rexera_api.services.sla_monitor import SlaMonitor

NOW = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def overdue_task(db_session, workflow):
    return make_task(
        db_session,
        workflow,
        status="IN_PROGRESS",
        sla_hours=24,
        started_at=NOW - timedelta(hours=30),
        sla_due_at=NOW - timedelta(hours=6),
    )


class TestFindBreaches:
    def test_overdue_open_task_is_a_breach(self, db_session, overdue_task):
        breaches = SlaMonitor(db_session).find_breaches(NOW)

        assert [task.id for task in breaches] == [overdue_task.id]

    def test_terminal_and_future_tasks_are_ignored(self, db_session, workflow):
        make_task(db_session, workflow, status="COMPLETED", sla_due_at=NOW - timedelta(hours=1))
        make_task(
            db_session,
            workflow,
            status="FAILED",
            task_type="failed",
            sla_due_at=NOW - timedelta(hours=1),
        )
        make_task(
            db_session,
            workflow,
            status="IN_PROGRESS",
            task_type="future",
            sla_due_at=NOW + timedelta(hours=1),
        )
        make_task(db_session, workflow, task_type="no_sla")

        assert SlaMonitor(db_session).find_breaches(NOW) == []

    def test_already_breached_is_ignored(self, db_session, workflow):
        make_task(
            db_session,
            workflow,
            status="IN_PROGRESS",
            sla_status="BREACHED",
            sla_due_at=NOW - timedelta(hours=1),
        )

        assert SlaMonitor(db_session).find_breaches(NOW) == []


class TestRun:
    def test_marks_breached_and_notifies(self, db_session, overdue_task, hil_user):
        result = SlaMonitor(db_session).run(NOW)

        assert result.breaches_found == 1
        assert result.breaches_processed == 1
        assert result.message == "Processed 1 SLA breaches"

        db_session.expire_all()
        assert db_session.get(TaskExecutionModel, overdue_task.id).sla_status == "BREACHED"
        notification = db_session.query(NotificationModel).one()
        assert notification.user_id == hil_user.id
        assert notification.type == "SLA_WARNING"
        assert notification.priority == "HIGH"
        assert notification.title == "SLA Breach Alert"
        assert notification.metadata_["task_id"] == overdue_task.id
        assert notification.metadata_["hours_overdue"] == 6
        assert notification.metadata_["sla_hours"] == 24

    def test_second_run_does_not_reprocess(self, db_session, overdue_task, hil_user):
        monitor = SlaMonitor(db_session)
        monitor.run(NOW)

        result = monitor.run(NOW + timedelta(hours=1))

        assert result.breaches_found == 0
        assert db_session.query(NotificationModel).count() == 1

    def test_notifies_every_hil_user(self, db_session, overdue_task, hil_user, second_hil_user):
        SlaMonitor(db_session).run(NOW)

        recipients = {n.user_id for n in db_session.query(NotificationModel).all()}
        assert recipients == {hil_user.id, second_hil_user.id}


class TestCronEndpoint:
    def test_runs_without_secret(self, client, db_session, workflow):
        make_task(
            db_session,
            workflow,
            status="IN_PROGRESS",
            sla_due_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )

        response = client.post("/api/cron/sla-monitor")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Processed 1 SLA breaches",
            "breaches_found": 1,
            "breaches_processed": 1,
        }

    def test_wrong_secret_is_401(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "cron_secret", "s3cret")

        response = client.post(
            "/api/cron/sla-monitor", headers={"Authorization": "Bearer nope"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid cron secret"

    def test_missing_or_partial_secret_is_401(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "cron_secret", "s3cret")

        missing = client.post("/api/cron/sla-monitor")
        partial = client.post(
            "/api/cron/sla-monitor", headers={"Authorization": "Bearer s3cre"}
        )

        assert missing.status_code == 401
        assert partial.status_code == 401

    def test_correct_secret(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "cron_secret", "s3cret")

        response = client.post(
            "/api/cron/sla-monitor", headers={"Authorization": "Bearer s3cret"}
        )

        assert response.status_code == 200
        assert response.json()["breaches_found"] == 0
