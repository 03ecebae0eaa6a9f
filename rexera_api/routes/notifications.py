"""
Notification routes. Every endpoint is scoped to the calling user.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_current_user, require_hil_user
from ..db.audit_service import AuditService
from ..db.base import get_db
from ..db.models import NotificationModel
from ..enums import AuditAction, AuditEventType, NotificationType, PriorityLevel
from ..errors import APIErrors
from ..primitives import enum_value
from ..schemas.common import build_pagination, success
from ..schemas.notifications import NotificationCreate, NotificationUpdate
from ..services.notifications import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _load(service: NotificationService, notification_id: str, user: AuthUser) -> NotificationModel:
    notification = service.get_for_user(notification_id, user.id)
    if notification is None:
        raise APIErrors.not_found("Notification", notification_id)
    return notification


@router.get("")
async def list_notifications(
    type: Optional[NotificationType] = None,
    priority: Optional[PriorityLevel] = None,
    read: Optional[bool] = None,
    limit: int = Query(100, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """The caller's notifications, newest first."""
    items, total = NotificationService(db).list_for_user(
        user.id,
        type=enum_value(type),
        priority=enum_value(priority),
        read=read,
        limit=limit,
        offset=offset,
    )
    return success(
        [item.to_dict() for item in items],
        pagination=build_pagination(offset // limit + 1, limit, total),
    )


@router.get("/stats")
async def notification_stats(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return success(NotificationService(db).stats(user.id))


@router.patch("/mark-all-read")
async def mark_all_read(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    updated = NotificationService(db).mark_all_read(user.id)
    return success({"updated_count": updated})


@router.post("", status_code=201)
async def create_notification(
    body: NotificationCreate,
    user: AuthUser = Depends(require_hil_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Create a notification for any user. HIL users only."""
    notification = NotificationService(db).create(**body.model_dump())
    AuditService(db).log(
        AuditService.resource_event(
            AuditEventType.NOTIFICATION.value,
            user.id,
            user.display_name,
            AuditAction.CREATE.value,
            "notification",
            notification.id,
            event_data={"recipient_id": notification.user_id, "type": notification.type},
        )
    )
    return success(notification.to_dict())


@router.get("/{notification_id}")
async def get_notification(
    notification_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return success(_load(NotificationService(db), notification_id, user).to_dict())


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = NotificationService(db)
    notification = service.mark_read(_load(service, notification_id, user))
    return success(notification.to_dict())


@router.patch("/{notification_id}")
async def update_notification(
    notification_id: str,
    body: NotificationUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = NotificationService(db)
    notification = service.update(
        _load(service, notification_id, user), body.model_dump(exclude_unset=True)
    )
    return success(notification.to_dict())


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = NotificationService(db)
    service.delete(_load(service, notification_id, user))
    return success({"id": notification_id}, message="Notification deleted successfully")
