"""
Database package for the Rexera API.
"""

from .audit_models import AuditEventModel
from .base import Base, get_db, get_engine, get_session_local, init_database
from .models import (
    AgentModel,
    ClientChatMetadataModel,
    ClientModel,
    CommunicationModel,
    CounterpartyModel,
    DocumentModel,
    EmailMetadataModel,
    HilNoteModel,
    NotificationModel,
    PhoneMetadataModel,
    TaskExecutionModel,
    UserProfileModel,
    WorkflowCounterpartyModel,
    WorkflowModel,
)

__all__ = [
    "Base",
    "get_db",
    "get_engine",
    "get_session_local",
    "init_database",
    "AgentModel",
    "AuditEventModel",
    "ClientChatMetadataModel",
    "ClientModel",
    "CommunicationModel",
    "CounterpartyModel",
    "DocumentModel",
    "EmailMetadataModel",
    "HilNoteModel",
    "NotificationModel",
    "PhoneMetadataModel",
    "TaskExecutionModel",
    "UserProfileModel",
    "WorkflowCounterpartyModel",
    "WorkflowModel",
]
