"""Request schemas for notifications."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import constr

from ..enums import NotificationType, PriorityLevel
from .common import RexeraModel, UUIDStr


class NotificationCreate(RexeraModel):
    user_id: UUIDStr
    type: NotificationType
    priority: PriorityLevel
    title: constr(min_length=1, max_length=255)
    message: constr(min_length=1)
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class NotificationUpdate(RexeraModel):
    read: Optional[bool] = None
    read_at: Optional[datetime] = None
