"""Request schemas for workflows and workflow counterparties."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ConfigDict, Field, constr

from ..enums import PriorityLevel, WorkflowCounterpartyStatus, WorkflowStatus, WorkflowType
from .common import RexeraModel, UUIDStr

WORKFLOW_SORT_FIELDS = (
    "created_at",
    "updated_at",
    "due_date",
    "status",
    "workflow_type",
    "title",
    "client_id",
    "interrupt_count",
)


class WorkflowCreate(RexeraModel):
    """Body for POST /api/workflows."""

    workflow_type: WorkflowType
    client_id: UUIDStr
    title: constr(min_length=1, max_length=200)
    description: Optional[constr(max_length=1000)] = None
    priority: PriorityLevel = PriorityLevel.NORMAL
    metadata: Dict[str, Any] = Field(default_factory=dict)
    due_date: Optional[datetime] = None
    created_by: Optional[UUIDStr] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "workflow_type": "PAYOFF_REQUEST",
                "client_id": "11111111-2222-3333-4444-555555555555",
                "title": "Payoff for 123 Main St",
                "priority": "HIGH",
                "metadata": {"loan_number": "LN-0042"},
            }
        }
    )


class WorkflowUpdate(RexeraModel):
    """Body for PATCH /api/workflows/{id}. Only supplied fields are written."""

    title: Optional[constr(min_length=1, max_length=200)] = None
    description: Optional[constr(max_length=1000)] = None
    status: Optional[WorkflowStatus] = None
    priority: Optional[PriorityLevel] = None
    metadata: Optional[Dict[str, Any]] = None
    assigned_to: Optional[UUIDStr] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class WorkflowCounterpartyCreate(RexeraModel):
    counterparty_id: UUIDStr
    status: WorkflowCounterpartyStatus = WorkflowCounterpartyStatus.PENDING


class WorkflowCounterpartyUpdate(RexeraModel):
    status: WorkflowCounterpartyStatus
