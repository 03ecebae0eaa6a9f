"""
Notification service: in-app notifications for HIL users.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..db.models import NotificationModel, UserProfileModel
from ..enums import NotificationType, PriorityLevel, UserType
from ..primitives import utc_now

logger = structlog.get_logger()


class NotificationService:
    """Service for creating and reading notifications."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: str,
        type: str,
        priority: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationModel:
        notification = NotificationModel(
            user_id=user_id,
            type=type,
            priority=priority,
            title=title,
            message=message,
            action_url=action_url,
            metadata_=metadata,
            read=False,
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def notify_users(
        self,
        user_ids: Iterable[str],
        type: str,
        priority: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> List[NotificationModel]:
        """Create the same notification for several users in one commit."""
        notifications = [
            NotificationModel(
                user_id=user_id,
                type=type,
                priority=priority,
                title=title,
                message=message,
                action_url=action_url,
                metadata_=dict(metadata) if metadata is not None else None,
                read=False,
            )
            for user_id in dict.fromkeys(user_ids)
        ]
        if not notifications:
            return []
        self.db.add_all(notifications)
        self.db.commit()
        logger.info("Notifications created", type=type, count=len(notifications))
        return notifications

    def hil_user_ids(self) -> List[str]:
        rows = (
            self.db.query(UserProfileModel.id)
            .filter(UserProfileModel.user_type == UserType.HIL_USER.value)
            .all()
        )
        return [row[0] for row in rows]

    def notify_hil_users(self, **kwargs: Any) -> List[NotificationModel]:
        return self.notify_users(self.hil_user_ids(), **kwargs)

    def existing_user_ids(self, user_ids: Iterable[str]) -> List[str]:
        """Filter ids down to those with a user profile, preserving order."""
        wanted = list(dict.fromkeys(user_ids))
        if not wanted:
            return []
        found = {
            row[0]
            for row in self.db.query(UserProfileModel.id)
            .filter(UserProfileModel.id.in_(wanted))
            .all()
        }
        return [user_id for user_id in wanted if user_id in found]

    def get_for_user(self, notification_id: str, user_id: str) -> Optional[NotificationModel]:
        return (
            self.db.query(NotificationModel)
            .filter(
                NotificationModel.id == notification_id,
                NotificationModel.user_id == user_id,
            )
            .first()
        )

    def list_for_user(
        self,
        user_id: str,
        type: Optional[str] = None,
        priority: Optional[str] = None,
        read: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[NotificationModel], int]:
        query = self.db.query(NotificationModel).filter(NotificationModel.user_id == user_id)
        if type:
            query = query.filter(NotificationModel.type == type)
        if priority:
            query = query.filter(NotificationModel.priority == priority)
        if read is not None:
            query = query.filter(NotificationModel.read == read)

        total = query.count()
        items = (
            query.order_by(desc(NotificationModel.created_at))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total

    def stats(self, user_id: str) -> Dict[str, int]:
        rows = (
            self.db.query(
                NotificationModel.type, NotificationModel.priority, NotificationModel.read
            )
            .filter(NotificationModel.user_id == user_id)
            .all()
        )
        return {
            "total": len(rows),
            "unread": sum(1 for _, _, read in rows if not read),
            "urgent": sum(1 for _, priority, _ in rows if priority == PriorityLevel.URGENT.value),
            "taskInterrupts": sum(
                1 for type_, _, _ in rows if type_ == NotificationType.TASK_INTERRUPT.value
            ),
        }

    def mark_read(self, notification: NotificationModel) -> NotificationModel:
        notification.read = True
        notification.read_at = utc_now()
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: str) -> int:
        updated = (
            self.db.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
            .update(
                {NotificationModel.read: True, NotificationModel.read_at: utc_now()},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated

    def update(self, notification: NotificationModel, changes: Dict[str, Any]) -> NotificationModel:
        if "read" in changes and changes["read"] is not None:
            notification.read = changes["read"]
            if changes["read"] and not changes.get("read_at") and notification.read_at is None:
                notification.read_at = utc_now()
            if not changes["read"]:
                notification.read_at = None
        if changes.get("read_at") is not None:
            notification.read_at = changes["read_at"]
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def delete(self, notification: NotificationModel) -> None:
        self.db.delete(notification)
        self.db.commit()
