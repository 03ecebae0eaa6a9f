"""
Task execution service and the task status state machine.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import structlog
from sqlalchemy import desc
from sqlalchemy.orm import Session, selectinload

from ..db.audit_service import AuditService
from ..db.models import TaskExecutionModel, WorkflowModel
from ..enums import (
    ActorType,
    AuditAction,
    NotificationType,
    PriorityLevel,
    TaskStatus,
)
from ..primitives import as_utc, utc_now
from .exceptions import InvalidTransitionError
from .notifications import NotificationService
from .workflows import WorkflowService

logger = structlog.get_logger()

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    TaskStatus.PENDING.value: frozenset(
        {
            TaskStatus.IN_PROGRESS.value,
            TaskStatus.AWAITING_REVIEW.value,
            TaskStatus.INTERRUPT.value,
            TaskStatus.COMPLETED.value,
            TaskStatus.FAILED.value,
        }
    ),
    TaskStatus.IN_PROGRESS.value: frozenset(
        {
            TaskStatus.AWAITING_REVIEW.value,
            TaskStatus.INTERRUPT.value,
            TaskStatus.COMPLETED.value,
            TaskStatus.FAILED.value,
        }
    ),
    TaskStatus.AWAITING_REVIEW.value: frozenset(
        {
            TaskStatus.IN_PROGRESS.value,
            TaskStatus.INTERRUPT.value,
            TaskStatus.COMPLETED.value,
            TaskStatus.FAILED.value,
        }
    ),
    TaskStatus.INTERRUPT.value: frozenset(
        {
            TaskStatus.IN_PROGRESS.value,
            TaskStatus.AWAITING_REVIEW.value,
            TaskStatus.COMPLETED.value,
            TaskStatus.FAILED.value,
        }
    ),
    # Leaving FAILED is a retry
    TaskStatus.FAILED.value: frozenset(
        {TaskStatus.PENDING.value, TaskStatus.IN_PROGRESS.value}
    ),
    TaskStatus.COMPLETED.value: frozenset(),
}

TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.FAILED.value})

TASK_UPDATE_FIELDS = (
    "output_data",
    "completed_at",
    "started_at",
    "error_message",
    "execution_time_ms",
    "retry_count",
    "sla_hours",
    "sla_status",
)


def can_transition(current: str, target: str) -> bool:
    """Whether a task may move from ``current`` to ``target``. Same-state is always allowed."""
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def compute_sla_due_at(started_at: Optional[datetime], sla_hours: int) -> Optional[datetime]:
    if started_at is None:
        return None
    return as_utc(started_at) + timedelta(hours=sla_hours)


class TaskExecutionService:
    """Service for managing task executions."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)
        self.notifications = NotificationService(db)

    def _base_query(self, company_id: Optional[str] = None):
        query = self.db.query(TaskExecutionModel).options(
            selectinload(TaskExecutionModel.agent),
            selectinload(TaskExecutionModel.workflow),
        )
        if company_id is not None:
            query = query.join(WorkflowModel, TaskExecutionModel.workflow).filter(
                WorkflowModel.client_id == company_id
            )
        return query

    def get(self, task_id: str, company_id: Optional[str] = None) -> Optional[TaskExecutionModel]:
        return (
            self._base_query(company_id).filter(TaskExecutionModel.id == task_id).first()
        )

    def get_by_workflow_and_type(
        self, workflow_id: str, task_type: str, company_id: Optional[str] = None
    ) -> Optional[TaskExecutionModel]:
        return (
            self._base_query(company_id)
            .filter(
                TaskExecutionModel.workflow_id == workflow_id,
                TaskExecutionModel.task_type == task_type,
            )
            .order_by(TaskExecutionModel.sequence_order)
            .first()
        )

    def list(
        self,
        filters: Dict[str, Any],
        company_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[TaskExecutionModel], int]:
        query = self._base_query(company_id)
        for name in ("workflow_id", "agent_id", "status"):
            if filters.get(name):
                query = query.filter(getattr(TaskExecutionModel, name) == filters[name])

        total = query.count()
        tasks = (
            query.order_by(desc(TaskExecutionModel.created_at), TaskExecutionModel.sequence_order)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return tasks, total

    def create_many(self, items: List[Dict[str, Any]]) -> List[TaskExecutionModel]:
        """Insert a batch of tasks in one transaction."""
        tasks = []
        for item in items:
            data = dict(item)
            data["input_data"] = data.get("input_data") or {}
            data["output_data"] = data.get("output_data") or {}
            task = TaskExecutionModel(**data)
            task.sla_due_at = compute_sla_due_at(task.started_at, task.sla_hours or 24)
            tasks.append(task)
        self.db.add_all(tasks)
        self.db.commit()
        for task in tasks:
            self.db.refresh(task)
        logger.info("Task executions created", count=len(tasks))
        return tasks

    def update(
        self,
        task: TaskExecutionModel,
        changes: Dict[str, Any],
        actor_id: str,
        actor_name: Optional[str] = None,
        actor_type: str = ActorType.HUMAN.value,
    ) -> TaskExecutionModel:
        """Apply a partial update, gating status changes through the state machine.

        Raises:
            InvalidTransitionError: the requested status change is not allowed
        """
        previous_status = task.status
        target = changes.get("status")
        status_changed = target is not None and target != previous_status

        if status_changed and not can_transition(previous_status, target):
            raise InvalidTransitionError(previous_status, target)

        had_started = task.started_at is not None
        previous_sla_hours = task.sla_hours

        for name in TASK_UPDATE_FIELDS:
            if name in changes and changes[name] is not None:
                setattr(task, name, changes[name])
        if "error_message" in changes and changes["error_message"] is None:
            task.error_message = None

        if status_changed:
            self._enter_status(task, previous_status, target, changes)

        if task.started_at is not None and (
            not had_started or task.sla_hours != previous_sla_hours or task.sla_due_at is None
        ):
            task.sla_due_at = compute_sla_due_at(task.started_at, task.sla_hours)

        self.db.commit()
        self.db.refresh(task)

        if status_changed:
            self.after_status_change(task)
            self.audit.log(
                AuditService.task_event(
                    actor_type,
                    actor_id,
                    actor_name,
                    AuditAction.EXECUTE.value,
                    task.id,
                    task.workflow_id,
                    {
                        "task_type": task.task_type,
                        "previous_status": previous_status,
                        "new_status": task.status,
                    },
                )
            )
            logger.info(
                "Task status changed",
                task_id=task.id,
                from_status=previous_status,
                to_status=task.status,
            )
        return task

    def _enter_status(
        self,
        task: TaskExecutionModel,
        previous_status: str,
        target: str,
        changes: Dict[str, Any],
    ) -> None:
        now = utc_now()
        task.status = target

        if previous_status == TaskStatus.FAILED.value:
            if changes.get("retry_count") is None:
                task.retry_count = (task.retry_count or 0) + 1
            if changes.get("completed_at") is None:
                task.completed_at = None

        if target == TaskStatus.IN_PROGRESS.value and task.started_at is None:
            task.started_at = now
        if target in TERMINAL_STATUSES and task.completed_at is None:
            task.completed_at = now

    def after_status_change(self, task: TaskExecutionModel) -> None:
        """Workflow progress and interrupt notifications after a committed status change."""
        workflow = task.workflow or self.db.get(WorkflowModel, task.workflow_id)
        if workflow is None:
            return

        if WorkflowService(self.db).sync_status_from_tasks(workflow):
            self.db.commit()
            logger.info(
                "Workflow status derived from tasks",
                workflow_id=workflow.id,
                status=workflow.status,
            )

        if task.status == TaskStatus.INTERRUPT.value:
            self.notify_interrupt(task, workflow)

    def notify_interrupt(self, task: TaskExecutionModel, workflow: WorkflowModel) -> None:
        recipients = (
            [workflow.assigned_to]
            if workflow.assigned_to
            else self.notifications.hil_user_ids()
        )
        reason = f" ({task.interrupt_type})" if task.interrupt_type else ""
        self.notifications.notify_users(
            recipients,
            type=NotificationType.TASK_INTERRUPT.value,
            priority=PriorityLevel.HIGH.value,
            title="Task requires attention",
            message=f"Task '{task.title}' in workflow '{workflow.title}' was interrupted{reason}",
            action_url=f"/workflow/{workflow.id}",
            metadata={
                "task_id": task.id,
                "workflow_id": workflow.id,
                "task_type": task.task_type,
                "interrupt_type": task.interrupt_type,
            },
        )
