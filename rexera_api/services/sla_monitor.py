"""
SLA breach detection for task executions.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session

from ..db.audit_service import AuditService
from ..db.models import TaskExecutionModel
from ..enums import AuditAction, NotificationType, PriorityLevel, SlaStatus, TaskStatus
from ..primitives import as_utc, utc_now
from .notifications import NotificationService

logger = structlog.get_logger()


@dataclass
class SlaCheckResult:
    breaches_found: int
    breaches_processed: int

    @property
    def message(self) -> str:
        return f"Processed {self.breaches_processed} SLA breaches"


class SlaMonitor:
    """Marks overdue tasks as breached and notifies HIL users."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)
        self.audit = AuditService(db)

    def find_breaches(self, now: Optional[datetime] = None) -> List[TaskExecutionModel]:
        now = now or utc_now()
        return (
            self.db.query(TaskExecutionModel)
            .filter(
                TaskExecutionModel.sla_due_at.isnot(None),
                TaskExecutionModel.sla_due_at < now,
                TaskExecutionModel.status.notin_(
                    [TaskStatus.COMPLETED.value, TaskStatus.FAILED.value]
                ),
                TaskExecutionModel.sla_status == SlaStatus.ON_TIME.value,
            )
            .order_by(TaskExecutionModel.sla_due_at)
            .all()
        )

    def run(self, now: Optional[datetime] = None) -> SlaCheckResult:
        now = now or utc_now()
        breaches = self.find_breaches(now)
        processed = 0
        hil_users = self.notifications.hil_user_ids()

        for task in breaches:
            hours_overdue = round((now - as_utc(task.sla_due_at)).total_seconds() / 3600)
            task.sla_status = SlaStatus.BREACHED.value
            self.db.commit()

            self.notifications.notify_users(
                hil_users,
                type=NotificationType.SLA_WARNING.value,
                priority=PriorityLevel.HIGH.value,
                title="SLA Breach Alert",
                message=(
                    f"Task '{task.title}' has exceeded its {task.sla_hours}h SLA "
                    f"by {hours_overdue} hours"
                ),
                action_url=f"/workflow/{task.workflow_id}",
                metadata={
                    "task_id": task.id,
                    "task_type": task.task_type,
                    "hours_overdue": hours_overdue,
                    "sla_hours": task.sla_hours,
                    "breach_detected_at": now.isoformat(),
                },
            )
            self.audit.log(
                AuditService.system_event(
                    "sla-monitor",
                    "SLA Monitor",
                    AuditAction.UPDATE.value,
                    "task_execution",
                    task.id,
                    {"sla_status": SlaStatus.BREACHED.value, "hours_overdue": hours_overdue},
                    workflow_id=task.workflow_id,
                )
            )
            processed += 1
            logger.warning(
                "SLA breached",
                task_id=task.id,
                workflow_id=task.workflow_id,
                hours_overdue=hours_overdue,
            )

        logger.info("SLA check finished", breaches_found=len(breaches), processed=processed)
        return SlaCheckResult(breaches_found=len(breaches), breaches_processed=processed)
