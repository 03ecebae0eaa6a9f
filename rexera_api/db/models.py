"""
SQLAlchemy models for the Rexera workflow API.

Timestamps are stored timezone-aware. Row ids are UUID4 strings so the same
schema runs on PostgreSQL and SQLite.
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..enums import (
    CommunicationStatus,
    CounterpartyType,
    Direction,
    ExecutorType,
    InterruptType,
    NotificationType,
    PriorityLevel,
    SlaStatus,
    TaskStatus,
    UserType,
    WorkflowCounterpartyStatus,
    WorkflowStatus,
    WorkflowType,
)
from ..primitives import format_workflow_id_with_type, generate_uuid, isoformat, utc_now
from .base import Base


def _db_enum(enum_cls, name: str) -> Enum:
    """Map a str Enum to a named database enum of its values."""
    return Enum(*[member.value for member in enum_cls], name=name)


workflow_type_enum = _db_enum(WorkflowType, "workflow_type")
workflow_status_enum = _db_enum(WorkflowStatus, "workflow_status")
task_status_enum = _db_enum(TaskStatus, "task_status")
executor_type_enum = _db_enum(ExecutorType, "executor_type")
sla_status_enum = _db_enum(SlaStatus, "sla_status")
priority_level_enum = _db_enum(PriorityLevel, "priority_level")
interrupt_type_enum = _db_enum(InterruptType, "interrupt_type")
notification_type_enum = _db_enum(NotificationType, "notification_type")
counterparty_type_enum = _db_enum(CounterpartyType, "counterparty_type")
workflow_counterparty_status_enum = _db_enum(
    WorkflowCounterpartyStatus, "workflow_counterparty_status"
)
direction_enum = _db_enum(Direction, "email_direction")
communication_status_enum = _db_enum(CommunicationStatus, "email_status")
user_type_enum = _db_enum(UserType, "user_type")


class ClientModel(Base):
    """A client company that owns workflows."""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "domain": self.domain,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "domain": self.domain}


class UserProfileModel(Base):
    """Profile row for an authenticated user (HIL operator or client user)."""

    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_type = Column(user_type_enum, nullable=False, index=True)
    email = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False)
    company_id = Column(String(36), ForeignKey("clients.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_type": self.user_type,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "company_id": self.company_id,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_summary(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "full_name": self.full_name}


class AgentModel(Base):
    """An AI agent that can execute tasks."""

    __tablename__ = "agents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=True)
    capabilities = Column(JSON, nullable=False, default=list)
    api_endpoint = Column(String(500), nullable=True)
    configuration = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "capabilities": self.capabilities or [],
            "api_endpoint": self.api_endpoint,
            "configuration": self.configuration or {},
            "is_active": self.is_active,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def to_summary(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "type": self.type}


class WorkflowModel(Base):
    """A business workflow instance composed of ordered task executions."""

    __tablename__ = "workflows"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    human_readable_id = Column(String(32), nullable=True, unique=True)
    workflow_type = Column(workflow_type_enum, nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        workflow_status_enum,
        nullable=False,
        default=WorkflowStatus.PENDING.value,
        index=True,
    )
    priority = Column(
        priority_level_enum, nullable=False, default=PriorityLevel.NORMAL.value
    )
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_by = Column(String(36), ForeignKey("user_profiles.id"), nullable=True)
    assigned_to = Column(
        String(36), ForeignKey("user_profiles.id"), nullable=True, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)

    # n8n execution tracking
    n8n_execution_id = Column(String(100), nullable=True)
    n8n_started_at = Column(DateTime(timezone=True), nullable=True)
    n8n_status = Column(String(20), nullable=False, default="not_started")

    client = relationship("ClientModel")
    task_executions = relationship(
        "TaskExecutionModel",
        back_populates="workflow",
        order_by="TaskExecutionModel.sequence_order",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_workflows_client_status", "client_id", "status"),
        Index("ix_workflows_created_at", "created_at"),
    )

    @property
    def display_id(self) -> str:
        return format_workflow_id_with_type(self.id, self.workflow_type)

    @property
    def interrupt_count(self) -> int:
        return sum(
            1 for task in self.task_executions if task.status == TaskStatus.INTERRUPT.value
        )

    def to_dict(
        self, include_client: bool = False, include_tasks: bool = False
    ) -> Dict[str, Any]:
        """Convert model to dictionary."""
        data = {
            "id": self.id,
            "human_readable_id": self.human_readable_id,
            "display_id": self.display_id,
            "workflow_type": self.workflow_type,
            "client_id": self.client_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "metadata": self.metadata_ or {},
            "created_by": self.created_by,
            "assigned_to": self.assigned_to,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "completed_at": isoformat(self.completed_at),
            "due_date": isoformat(self.due_date),
            "n8n_execution_id": self.n8n_execution_id,
            "n8n_started_at": isoformat(self.n8n_started_at),
            "n8n_status": self.n8n_status,
        }
        if include_client:
            data["client"] = self.client.to_summary() if self.client else None
        if include_tasks:
            data["task_executions"] = [
                task.to_dict(include_agent=True) for task in self.task_executions
            ]
        return data


class TaskExecutionModel(Base):
    """A single unit of work within a workflow."""

    __tablename__ = "task_executions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workflow_id = Column(
        String(36),
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    agent_id = Column(String(36), ForeignKey("agents.id"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    sequence_order = Column(Integer, nullable=False)
    # Stable identifier from the workflow definition
    task_type = Column(String(100), nullable=False)
    status = Column(
        task_status_enum, nullable=False, default=TaskStatus.PENDING.value, index=True
    )
    interrupt_type = Column(interrupt_type_enum, nullable=True)
    executor_type = Column(executor_type_enum, nullable=False)
    priority = Column(
        priority_level_enum, nullable=False, default=PriorityLevel.NORMAL.value
    )
    input_data = Column(JSON, nullable=False, default=dict)
    output_data = Column(JSON, nullable=True, default=dict)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    execution_time_ms = Column(Integer, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)

    # SLA tracking
    sla_hours = Column(Integer, nullable=False, default=24)
    sla_due_at = Column(DateTime(timezone=True), nullable=True)
    sla_status = Column(sla_status_enum, nullable=False, default=SlaStatus.ON_TIME.value)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    workflow = relationship("WorkflowModel", back_populates="task_executions")
    agent = relationship("AgentModel")

    __table_args__ = (
        Index("ix_task_executions_workflow_type", "workflow_id", "task_type"),
        Index("ix_task_executions_sla", "sla_due_at", "sla_status", "status"),
    )

    def to_dict(self, include_agent: bool = False, include_workflow: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "agent_id": self.agent_id,
            "title": self.title,
            "description": self.description,
            "sequence_order": self.sequence_order,
            "task_type": self.task_type,
            "status": self.status,
            "interrupt_type": self.interrupt_type,
            "executor_type": self.executor_type,
            "priority": self.priority,
            "input_data": self.input_data or {},
            "output_data": self.output_data or {},
            "error_message": self.error_message,
            "started_at": isoformat(self.started_at),
            "completed_at": isoformat(self.completed_at),
            "execution_time_ms": self.execution_time_ms,
            "retry_count": self.retry_count,
            "sla_hours": self.sla_hours,
            "sla_due_at": isoformat(self.sla_due_at),
            "sla_status": self.sla_status,
            "created_at": isoformat(self.created_at),
        }
        if include_agent:
            data["agent"] = self.agent.to_summary() if self.agent else None
        if include_workflow and self.workflow is not None:
            data["workflow"] = {
                "id": self.workflow.id,
                "title": self.workflow.title,
                "client_id": self.workflow.client_id,
            }
        return data


class CommunicationModel(Base):
    """An email, phone call, SMS or client chat message tied to a workflow."""

    __tablename__ = "communications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workflow_id = Column(
        String(36),
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    thread_id = Column(String(36), nullable=True, index=True)
    sender_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=True)
    recipient_email = Column(String(255), nullable=True)
    subject = Column(String(500), nullable=True)
    body = Column(Text, nullable=True)
    communication_type = Column(String(20), nullable=False, index=True)
    direction = Column(direction_enum, nullable=True)
    status = Column(communication_status_enum, nullable=True)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    sender = relationship("UserProfileModel")
    workflow = relationship("WorkflowModel")
    email_metadata = relationship(
        "EmailMetadataModel", uselist=False, cascade="all, delete-orphan"
    )
    phone_metadata = relationship(
        "PhoneMetadataModel", uselist=False, cascade="all, delete-orphan"
    )
    client_chat_metadata = relationship(
        "ClientChatMetadataModel", uselist=False, cascade="all, delete-orphan"
    )

    def to_dict(
        self, include_sender: bool = False, include_workflow: bool = False
    ) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "thread_id": self.thread_id,
            "sender_id": self.sender_id,
            "recipient_email": self.recipient_email,
            "subject": self.subject,
            "body": self.body,
            "communication_type": self.communication_type,
            "direction": self.direction,
            "status": self.status,
            "metadata": self.metadata_ or {},
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
            "email_metadata": self.email_metadata.to_dict() if self.email_metadata else None,
            "phone_metadata": self.phone_metadata.to_dict() if self.phone_metadata else None,
            "client_chat_metadata": (
                self.client_chat_metadata.to_dict() if self.client_chat_metadata else None
            ),
        }
        if include_sender:
            data["sender"] = self.sender.to_summary() if self.sender else None
        if include_workflow:
            data["workflow"] = (
                {"id": self.workflow.id, "title": self.workflow.title}
                if self.workflow
                else None
            )
        return data


class EmailMetadataModel(Base):
    __tablename__ = "email_metadata"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    communication_id = Column(
        String(36),
        ForeignKey("communications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    message_id = Column(String(255), nullable=True)
    in_reply_to = Column(String(255), nullable=True)
    email_references = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    headers = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "communication_id": self.communication_id,
            "message_id": self.message_id,
            "in_reply_to": self.in_reply_to,
            "email_references": self.email_references or [],
            "attachments": self.attachments or [],
            "headers": self.headers or {},
            "created_at": isoformat(self.created_at),
        }


class PhoneMetadataModel(Base):
    __tablename__ = "phone_metadata"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    communication_id = Column(
        String(36),
        ForeignKey("communications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    phone_number = Column(String(50), nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    call_recording_url = Column(String(1000), nullable=True)
    transcript = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "communication_id": self.communication_id,
            "phone_number": self.phone_number,
            "duration_seconds": self.duration_seconds,
            "call_recording_url": self.call_recording_url,
            "transcript": self.transcript,
            "created_at": isoformat(self.created_at),
        }


class ClientChatMetadataModel(Base):
    __tablename__ = "client_chat_metadata"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    communication_id = Column(
        String(36),
        ForeignKey("communications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    external_platform_type = Column(String(50), nullable=True)
    external_platform_id = Column(String(255), nullable=True)
    cc_recipients = Column(JSON, nullable=False, default=list)
    bcc_recipients = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "communication_id": self.communication_id,
            "external_platform_type": self.external_platform_type,
            "external_platform_id": self.external_platform_id,
            "cc_recipients": self.cc_recipients or [],
            "bcc_recipients": self.bcc_recipients or [],
            "created_at": isoformat(self.created_at),
        }


class CounterpartyModel(Base):
    """An external organisation contacted during workflows."""

    __tablename__ = "counterparties"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, index=True)
    type = Column(counterparty_type_enum, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    contact_info = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    workflow_links = relationship("WorkflowCounterpartyModel", back_populates="counterparty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "contact_info": self.contact_info or {},
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }


class WorkflowCounterpartyModel(Base):
    """Association between a workflow and a counterparty."""

    __tablename__ = "workflow_counterparties"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workflow_id = Column(
        String(36),
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    counterparty_id = Column(
        String(36), ForeignKey("counterparties.id"), nullable=False, index=True
    )
    status = Column(
        workflow_counterparty_status_enum,
        nullable=False,
        default=WorkflowCounterpartyStatus.PENDING.value,
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    counterparty = relationship("CounterpartyModel", back_populates="workflow_links")

    __table_args__ = (
        UniqueConstraint(
            "workflow_id", "counterparty_id", name="uq_workflow_counterparty"
        ),
    )

    def to_dict(self, include_counterparty: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "counterparty_id": self.counterparty_id,
            "status": self.status,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_counterparty:
            data["counterparty"] = self.counterparty.to_dict() if self.counterparty else None
        return data


class DocumentModel(Base):
    """A working file or client deliverable attached to a workflow."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workflow_id = Column(
        String(36),
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename = Column(String(500), nullable=False)
    url = Column(String(2000), nullable=False)
    file_size_bytes = Column(BigInteger, nullable=True)
    mime_type = Column(String(255), nullable=True)
    document_type = Column(String(20), nullable=False, default="WORKING", index=True)
    tags = Column(JSON, nullable=False, default=list)
    upload_source = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="PENDING")
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    deliverable_data = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=1)
    change_summary = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("user_profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    workflow = relationship("WorkflowModel")
    created_by_user = relationship("UserProfileModel")

    def to_dict(
        self, include_workflow: bool = False, include_created_by: bool = False
    ) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "filename": self.filename,
            "url": self.url,
            "file_size_bytes": self.file_size_bytes,
            "mime_type": self.mime_type,
            "document_type": self.document_type,
            "tags": self.tags or [],
            "upload_source": self.upload_source,
            "status": self.status,
            "metadata": self.metadata_ or {},
            "deliverable_data": self.deliverable_data or {},
            "version": self.version,
            "change_summary": self.change_summary,
            "created_by": self.created_by,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_workflow and self.workflow is not None:
            data["workflow"] = {
                "id": self.workflow.id,
                "title": self.workflow.title,
                "client_id": self.workflow.client_id,
                "status": self.workflow.status,
            }
        if include_created_by and self.created_by_user is not None:
            data["created_by_user"] = {
                "id": self.created_by_user.id,
                "email": self.created_by_user.email,
                "user_type": self.created_by_user.user_type,
            }
        return data


class HilNoteModel(Base):
    """Internal note left by an HIL operator on a workflow; notes can be threaded."""

    __tablename__ = "hil_notes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    workflow_id = Column(
        String(36),
        ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id = Column(String(36), ForeignKey("user_profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    priority = Column(
        priority_level_enum, nullable=False, default=PriorityLevel.NORMAL.value
    )
    is_resolved = Column(Boolean, nullable=False, default=False)
    parent_note_id = Column(
        String(36), ForeignKey("hil_notes.id", ondelete="CASCADE"), nullable=True
    )
    mentions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    author = relationship("UserProfileModel")
    replies = relationship(
        "HilNoteModel",
        order_by="HilNoteModel.created_at",
        cascade="all, delete-orphan",
    )

    def to_dict(
        self, include_author: bool = False, include_replies: bool = False
    ) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "author_id": self.author_id,
            "content": self.content,
            "priority": self.priority,
            "is_resolved": self.is_resolved,
            "parent_note_id": self.parent_note_id,
            "mentions": self.mentions or [],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_author:
            data["author"] = self.author.to_summary() if self.author else None
        if include_replies:
            data["replies"] = [
                reply.to_dict(include_author=include_author) for reply in self.replies
            ]
        return data


class NotificationModel(Base):
    """In-app notification for an HIL user."""

    __tablename__ = "hil_notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(
        String(36), ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    type = Column(notification_type_enum, nullable=False, index=True)
    priority = Column(priority_level_enum, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    action_url = Column(String(1000), nullable=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "priority": self.priority,
            "title": self.title,
            "message": self.message,
            "action_url": self.action_url,
            "metadata": self.metadata_,
            "read": self.read,
            "read_at": isoformat(self.read_at),
            "created_at": isoformat(self.created_at),
        }

