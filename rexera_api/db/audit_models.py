"""
Audit Event Database Models.

Every significant state change (workflow lifecycle, task transitions, HIL
interventions, system operations) is recorded as an audit event with actor
information and a free-form event payload.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Column, DateTime, Enum, Index, String

from ..enums import ActorType, AuditAction
from ..primitives import generate_ulid, isoformat, utc_now
from .base import Base

audit_actor_type_enum = Enum(
    *[member.value for member in ActorType],
    name="audit_actor_type",
)

audit_action_enum = Enum(
    *[member.value for member in AuditAction],
    name="audit_action",
)


class AuditEventModel(Base):
    """Audit trail entry.

    Ids are ULIDs so that ordering by id matches ordering by creation time.
    """

    __tablename__ = "audit_events"

    id = Column(String(36), primary_key=True, default=generate_ulid)

    # Who performed the action
    actor_type = Column(audit_actor_type_enum, nullable=False)
    actor_id = Column(String(128), nullable=False, index=True)
    actor_name = Column(String(255), nullable=True)

    # What happened
    event_type = Column(String(50), nullable=False, index=True)
    action = Column(audit_action_enum, nullable=False, index=True)

    # What was affected
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(128), nullable=False)

    workflow_id = Column(String(36), nullable=True, index=True)
    client_id = Column(String(36), nullable=True, index=True)

    event_data = Column(JSON, nullable=False, default=dict)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    __table_args__ = (
        Index("ix_audit_events_resource", "resource_type", "resource_id"),
        Index("ix_audit_events_actor", "actor_type", "actor_id"),
        Index("ix_audit_events_created_type", "created_at", "event_type"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {
            "id": self.id,
            "actor_type": self.actor_type,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "event_type": self.event_type,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "workflow_id": self.workflow_id,
            "client_id": self.client_id,
            "event_data": self.event_data or {},
            "created_at": isoformat(self.created_at),
        }
