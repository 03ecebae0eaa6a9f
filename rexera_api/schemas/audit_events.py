"""Request schemas for audit events."""

from typing import Any, Dict, Optional

from pydantic import Field, constr

from ..enums import ActorType, AuditAction, AuditEventType
from .common import RexeraModel, UUIDStr


class AuditEventCreate(RexeraModel):
    actor_type: ActorType
    actor_id: constr(min_length=1, max_length=128)
    actor_name: Optional[constr(max_length=255)] = None
    event_type: AuditEventType
    action: AuditAction
    resource_type: constr(min_length=1, max_length=50)
    resource_id: constr(min_length=1, max_length=128)
    workflow_id: Optional[UUIDStr] = None
    client_id: Optional[UUIDStr] = None
    event_data: Dict[str, Any] = Field(default_factory=dict)
