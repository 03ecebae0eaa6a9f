"""Request schemas for task executions."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, conint, constr

from ..enums import ExecutorType, InterruptType, PriorityLevel, SlaStatus, TaskStatus
from .common import RexeraModel, UUIDStr


class TaskExecutionCreate(RexeraModel):
    workflow_id: UUIDStr
    agent_id: Optional[UUIDStr] = None
    title: constr(min_length=1, max_length=255)
    description: Optional[str] = None
    sequence_order: int
    task_type: constr(min_length=1, max_length=100)
    status: TaskStatus = TaskStatus.PENDING
    interrupt_type: Optional[InterruptType] = None
    executor_type: ExecutorType
    priority: PriorityLevel = PriorityLevel.NORMAL
    input_data: Dict[str, Any] = Field(default_factory=dict)
    output_data: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    execution_time_ms: Optional[int] = None
    retry_count: conint(ge=0) = 0
    sla_hours: conint(ge=1) = 24
    sla_status: SlaStatus = SlaStatus.ON_TIME


class TaskExecutionBulkCreate(RexeraModel):
    task_executions: List[TaskExecutionCreate] = Field(min_length=1)


class TaskExecutionUpdate(RexeraModel):
    """Fields a caller may change on a task. Status changes go through the transition gate."""

    status: Optional[TaskStatus] = None
    output_data: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    error_message: Optional[str] = None
    execution_time_ms: Optional[int] = None
    retry_count: Optional[conint(ge=0)] = None
    sla_hours: Optional[conint(ge=1)] = None
    sla_status: Optional[SlaStatus] = None


class TaskExecutionUpdateByType(TaskExecutionUpdate):
    """PATCH body addressing a task by (workflow_id, task_type)."""

    workflow_id: Optional[UUIDStr] = None
    task_type: Optional[constr(min_length=1)] = None
