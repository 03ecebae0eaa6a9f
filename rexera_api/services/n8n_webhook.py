"""
Reconciliation of n8n webhook events into workflow and task state.

The orchestrator is authoritative: these writes bypass the task transition
gate used by the PATCH endpoints.
"""

from typing import Any, Callable, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from ..db.audit_service import AuditService
from ..db.models import TaskExecutionModel, WorkflowModel
from ..enums import (
    AuditAction,
    N8nEventType,
    NotificationType,
    PriorityLevel,
    TaskStatus,
    WorkflowStatus,
)
from ..primitives import utc_now
from .notifications import NotificationService
from .workflows import WorkflowService

logger = structlog.get_logger()

SYSTEM_ID = "n8n"
SYSTEM_NAME = "n8n Webhook"


def _merged(existing: Optional[Dict[str, Any]], extra: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(existing or {})
    merged.update(extra)
    return merged


class N8nWebhookService:
    """Applies n8n webhook events to the database."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)
        self.notifications = NotificationService(db)
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Optional[str]]] = {
            N8nEventType.WORKFLOW_COMPLETED.value: self._workflow_completed,
            N8nEventType.WORKFLOW_FAILED.value: self._workflow_failed,
            N8nEventType.TASK_COMPLETED.value: self._task_completed,
            N8nEventType.TASK_FAILED.value: self._task_failed,
            N8nEventType.AGENT_TASK_COMPLETED.value: self._agent_task_completed,
            N8nEventType.AGENT_TASK_FAILED.value: self._agent_task_failed,
            N8nEventType.ERROR_OCCURRED.value: self._error_occurred,
        }

    def process(self, event_type: str, data: Dict[str, Any]) -> bool:
        """Apply one event.

        Returns:
            True if a row was updated, False if the target was missing or absent
        """
        logger.info("n8n webhook received", event_type=event_type)
        handler = self._handlers.get(event_type)
        if handler is None:
            logger.warning("Unknown n8n event type", event_type=event_type)
            return False
        return handler(data) is not None

    # Workflow events

    def _load_workflow(self, data: Dict[str, Any]) -> Optional[WorkflowModel]:
        workflow_id = data.get("workflowId")
        if not workflow_id:
            return None
        workflow = self.db.get(WorkflowModel, str(workflow_id))
        if workflow is None:
            logger.warning("n8n webhook for unknown workflow", workflow_id=workflow_id)
        return workflow

    def _update_workflow(
        self,
        data: Dict[str, Any],
        status: str,
        metadata: Dict[str, Any],
        completed: bool = False,
    ) -> Optional[str]:
        workflow = self._load_workflow(data)
        if workflow is None:
            return None

        previous_status = workflow.status
        workflow.status = status
        if completed:
            workflow.completed_at = utc_now()
        workflow.metadata_ = _merged(
            _merged(workflow.metadata_, data.get("metadata") or {}), metadata
        )
        self.db.commit()

        self.audit.log(
            AuditService.system_event(
                SYSTEM_ID,
                SYSTEM_NAME,
                AuditAction.UPDATE.value,
                "workflow",
                workflow.id,
                {"previous_status": previous_status, "new_status": status},
                workflow_id=workflow.id,
            )
        )
        return workflow.id

    def _workflow_completed(self, data: Dict[str, Any]) -> Optional[str]:
        return self._update_workflow(
            data,
            WorkflowStatus.COMPLETED.value,
            {"n8n_completed_at": utc_now().isoformat(), "n8n_result": data.get("result")},
            completed=True,
        )

    def _workflow_failed(self, data: Dict[str, Any]) -> Optional[str]:
        return self._update_workflow(
            data,
            WorkflowStatus.BLOCKED.value,
            {
                "n8n_error": data.get("error"),
                "n8n_failed_at": utc_now().isoformat(),
                "escalation_reason": "n8n workflow execution failed",
            },
        )

    def _error_occurred(self, data: Dict[str, Any]) -> Optional[str]:
        logger.error("n8n error occurred", error=data.get("error"), node=data.get("nodeId"))
        return self._update_workflow(
            data,
            WorkflowStatus.BLOCKED.value,
            {
                "n8n_error": data.get("error"),
                "n8n_error_node": data.get("nodeId"),
                "escalation_reason": "Unhandled error in n8n workflow",
            },
        )

    # Task events

    def _load_task(self, data: Dict[str, Any]) -> Optional[TaskExecutionModel]:
        task_id = data.get("taskId")
        if not task_id:
            return None
        task = self.db.get(TaskExecutionModel, str(task_id))
        if task is None:
            logger.warning("n8n webhook for unknown task", task_id=task_id)
        return task

    def _update_task(
        self,
        task: TaskExecutionModel,
        status: str,
        output: Dict[str, Any],
        data: Dict[str, Any],
        error_message: Optional[str] = None,
        execution_time_ms: Optional[int] = None,
    ) -> str:
        previous_status = task.status
        task.status = status
        if status == TaskStatus.COMPLETED.value:
            task.completed_at = utc_now()
        task.output_data = _merged(_merged(task.output_data, data.get("metadata") or {}), output)
        if error_message is not None:
            task.error_message = error_message
        if execution_time_ms is not None:
            task.execution_time_ms = execution_time_ms
        self.db.commit()

        workflow = task.workflow
        if workflow is not None and WorkflowService(self.db).sync_status_from_tasks(workflow):
            self.db.commit()

        self.audit.log(
            AuditService.system_event(
                SYSTEM_ID,
                SYSTEM_NAME,
                AuditAction.UPDATE.value,
                "task_execution",
                task.id,
                {
                    "task_type": task.task_type,
                    "previous_status": previous_status,
                    "new_status": status,
                },
                workflow_id=task.workflow_id,
            )
        )
        return task.id

    def _task_completed(self, data: Dict[str, Any]) -> Optional[str]:
        task = self._load_task(data)
        if task is None:
            return None
        return self._update_task(
            task, TaskStatus.COMPLETED.value, {"n8n_result": data.get("result")}, data
        )

    def _task_failed(self, data: Dict[str, Any]) -> Optional[str]:
        task = self._load_task(data)
        if task is None:
            return None
        return self._update_task(
            task,
            TaskStatus.FAILED.value,
            {
                "n8n_error": data.get("error"),
                "escalation_reason": "Task execution failed in n8n",
            },
            data,
            error_message=_error_text(data.get("error")) or "Task execution failed in n8n",
        )

    def _agent_task_completed(self, data: Dict[str, Any]) -> Optional[str]:
        if not data.get("agentName"):
            return None
        task = self._load_task(data)
        if task is None:
            return None
        execution_time = data.get("executionTime")
        return self._update_task(
            task,
            TaskStatus.COMPLETED.value,
            {
                "agent_name": data["agentName"],
                "agent_result": data.get("result"),
                "agent_execution_time": execution_time,
            },
            data,
            execution_time_ms=int(execution_time) if isinstance(execution_time, (int, float)) else None,
        )

    def _agent_task_failed(self, data: Dict[str, Any]) -> Optional[str]:
        if not data.get("agentName"):
            return None
        task = self._load_task(data)
        if task is None:
            return None
        agent_name = data["agentName"]
        error_message = _error_text(data.get("error")) or f"Agent {agent_name} failed"
        task_id = self._update_task(
            task,
            TaskStatus.FAILED.value,
            {"agent_name": agent_name, "agent_error": data.get("error")},
            data,
            error_message=error_message,
        )
        self.notifications.notify_hil_users(
            type=NotificationType.AGENT_FAILURE.value,
            priority=PriorityLevel.HIGH.value,
            title=f"Agent {agent_name} failed",
            message=f"Task '{task.title}' failed: {error_message}",
            action_url=f"/workflow/{task.workflow_id}",
            metadata={
                "task_id": task.id,
                "workflow_id": task.workflow_id,
                "agent_name": agent_name,
            },
        )
        return task_id


def _error_text(error: Any) -> Optional[str]:
    if error is None:
        return None
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)
