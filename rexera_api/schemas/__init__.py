"""
Request schemas for the Rexera API.
"""

from .agents import AgentUpdate
from .audit_events import AuditEventCreate
from .common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    EmailStr,
    RexeraModel,
    UUIDStr,
    build_pagination,
    paginated,
    parse_include,
    success,
)
from .communications import (
    CommunicationCreate,
    CommunicationForward,
    CommunicationReply,
    CommunicationUpdate,
)
from .counterparties import CounterpartyCreate, CounterpartyUpdate
from .documents import DocumentCreate, DocumentUpdate, DocumentVersionCreate
from .hil_notes import HilNoteCreate, HilNoteReply, HilNoteUpdate
from .notifications import NotificationCreate, NotificationUpdate
from .task_executions import (
    TaskExecutionBulkCreate,
    TaskExecutionCreate,
    TaskExecutionUpdate,
    TaskExecutionUpdateByType,
)
from .webhooks import N8nWebhookPayload
from .workflows import (
    WorkflowCounterpartyCreate,
    WorkflowCounterpartyUpdate,
    WorkflowCreate,
    WorkflowUpdate,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "AgentUpdate",
    "AuditEventCreate",
    "CommunicationCreate",
    "CommunicationForward",
    "CommunicationReply",
    "CommunicationUpdate",
    "CounterpartyCreate",
    "CounterpartyUpdate",
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentVersionCreate",
    "EmailStr",
    "HilNoteCreate",
    "HilNoteReply",
    "HilNoteUpdate",
    "N8nWebhookPayload",
    "NotificationCreate",
    "NotificationUpdate",
    "RexeraModel",
    "TaskExecutionBulkCreate",
    "TaskExecutionCreate",
    "TaskExecutionUpdate",
    "TaskExecutionUpdateByType",
    "UUIDStr",
    "WorkflowCounterpartyCreate",
    "WorkflowCounterpartyUpdate",
    "WorkflowCreate",
    "WorkflowUpdate",
    "build_pagination",
    "paginated",
    "parse_include",
    "success",
]
