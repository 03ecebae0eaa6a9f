"""Domain services. Each takes a SQLAlchemy session and commits its own writes."""

from .agents import AgentService, ClientService
from .communications import CommunicationService
from .counterparties import CounterpartyService
from .documents import PREDEFINED_TAGS, DocumentService, search_tags
from .exceptions import (
    CounterpartyInUseError,
    CounterpartyNotAllowedError,
    DuplicateRelationshipError,
    InvalidTransitionError,
    NotAuthorError,
    ServiceError,
)
from .hil_notes import HilNoteService
from .n8n_webhook import N8nWebhookService
from .notifications import NotificationService
from .sla_monitor import SlaCheckResult, SlaMonitor
from .task_executions import TaskExecutionService, can_transition
from .workflows import WorkflowCounterpartyService, WorkflowService

__all__ = [
    "AgentService",
    "ClientService",
    "CommunicationService",
    "CounterpartyInUseError",
    "CounterpartyNotAllowedError",
    "CounterpartyService",
    "DocumentService",
    "DuplicateRelationshipError",
    "HilNoteService",
    "InvalidTransitionError",
    "N8nWebhookService",
    "NotAuthorError",
    "NotificationService",
    "PREDEFINED_TAGS",
    "ServiceError",
    "SlaCheckResult",
    "SlaMonitor",
    "TaskExecutionService",
    "WorkflowCounterpartyService",
    "WorkflowService",
    "can_transition",
    "search_tags",
]
