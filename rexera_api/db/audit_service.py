"""
Audit Event Service.

Provides a clean interface for recording audit events throughout the application.
Workflow, task, communication and note operations use this service to keep an
audit trail. Recording is best-effort: a failed write is logged and never
fails the request that triggered it.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import desc, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..enums import ActorType, AuditEventType
from ..primitives import generate_ulid, utc_now
from .audit_models import AuditEventModel

logger = structlog.get_logger()

# Filters accepted by list_events that map one-to-one onto columns
EXACT_FILTERS = (
    "workflow_id",
    "client_id",
    "actor_type",
    "actor_id",
    "event_type",
    "action",
    "resource_type",
    "resource_id",
)


class AuditService:
    """Service for managing audit events.

    Usage:
        audit = AuditService(db_session)
        audit.log(AuditService.workflow_event(user.id, user.email, "create", wf.id, wf.client_id))
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, event: Dict[str, Any]) -> AuditEventModel:
        """Persist a single event, propagating database errors."""
        data = dict(event)
        data["event_data"] = data.get("event_data") or {}
        entry = AuditEventModel(id=generate_ulid(), created_at=utc_now(), **data)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def create_batch(self, events: List[Dict[str, Any]]) -> List[AuditEventModel]:
        """Persist several events in one transaction."""
        now = utc_now()
        entries = []
        for event in events:
            data = dict(event)
            data["event_data"] = data.get("event_data") or {}
            entries.append(AuditEventModel(id=generate_ulid(), created_at=now, **data))
        self.db.add_all(entries)
        self.db.commit()
        return entries

    def log(self, event: Dict[str, Any]) -> Optional[AuditEventModel]:
        """Record an event without ever raising.

        Returns:
            The created AuditEventModel, or None when the write failed
        """
        try:
            return self.create(event)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning(
                "Audit logging failed",
                error=str(exc),
                resource_type=event.get("resource_type"),
                resource_id=event.get("resource_id"),
                action=event.get("action"),
            )
            return None

    def log_batch(self, events: List[Dict[str, Any]]) -> int:
        """Record several events without ever raising. Returns the count written."""
        if not events:
            return 0
        try:
            return len(self.create_batch(events))
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Audit batch logging failed", error=str(exc), count=len(events))
            return 0

    # Event builders

    @staticmethod
    def workflow_event(
        actor_id: str,
        actor_name: Optional[str],
        action: str,
        workflow_id: str,
        client_id: Optional[str],
        event_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build a workflow management event performed by a human."""
        return {
            "actor_type": ActorType.HUMAN.value,
            "actor_id": actor_id,
            "actor_name": actor_name,
            "event_type": AuditEventType.WORKFLOW_MANAGEMENT.value,
            "action": action,
            "resource_type": "workflow",
            "resource_id": workflow_id,
            "workflow_id": workflow_id,
            "client_id": client_id,
            "event_data": event_data or {},
        }

    @staticmethod
    def task_event(
        actor_type: str,
        actor_id: str,
        actor_name: Optional[str],
        action: str,
        task_id: str,
        workflow_id: str,
        event_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build a task event. Human actors count as an intervention."""
        event_type = (
            AuditEventType.TASK_INTERVENTION
            if actor_type == ActorType.HUMAN.value
            else AuditEventType.TASK_EXECUTION
        )
        return {
            "actor_type": actor_type,
            "actor_id": actor_id,
            "actor_name": actor_name,
            "event_type": event_type.value,
            "action": action,
            "resource_type": "task_execution",
            "resource_id": task_id,
            "workflow_id": workflow_id,
            "event_data": event_data or {},
        }

    @staticmethod
    def resource_event(
        event_type: str,
        actor_id: str,
        actor_name: Optional[str],
        action: str,
        resource_type: str,
        resource_id: str,
        workflow_id: Optional[str] = None,
        event_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Build an event for a human action on any other resource."""
        return {
            "actor_type": ActorType.HUMAN.value,
            "actor_id": actor_id,
            "actor_name": actor_name,
            "event_type": event_type,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "workflow_id": workflow_id,
            "event_data": event_data or {},
        }

    @staticmethod
    def system_event(
        system_id: str,
        system_name: str,
        action: str,
        resource_type: str,
        resource_id: str,
        event_data: Optional[Dict[str, Any]] = None,
        workflow_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "actor_type": ActorType.SYSTEM.value,
            "actor_id": system_id,
            "actor_name": system_name,
            "event_type": AuditEventType.SYSTEM_OPERATION.value,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "workflow_id": workflow_id,
            "event_data": event_data or {},
        }

    @staticmethod
    def auth_event(
        user_id: str,
        user_name: Optional[str],
        action: str,
        event_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        return {
            "actor_type": ActorType.HUMAN.value,
            "actor_id": user_id,
            "actor_name": user_name,
            "event_type": AuditEventType.USER_AUTHENTICATION.value,
            "action": action,
            "resource_type": "user",
            "resource_id": user_id,
            "event_data": event_data or {},
        }

    # Query methods

    def list_events(
        self,
        filters: Dict[str, Any],
        page: int = 1,
        per_page: int = 50,
    ) -> Tuple[List[AuditEventModel], int]:
        """List events matching the given filters, newest first.

        Args:
            filters: Column filters plus optional ``from_date``/``to_date``
            page: 1-based page number
            per_page: Page size

        Returns:
            Tuple of (events on the page, total matching count)
        """
        query = self.db.query(AuditEventModel)
        for name in EXACT_FILTERS:
            value = filters.get(name)
            if value is not None:
                query = query.filter(getattr(AuditEventModel, name) == value)
        if filters.get("from_date") is not None:
            query = query.filter(AuditEventModel.created_at >= filters["from_date"])
        if filters.get("to_date") is not None:
            query = query.filter(AuditEventModel.created_at <= filters["to_date"])

        total = query.count()
        events = (
            query.order_by(desc(AuditEventModel.created_at), desc(AuditEventModel.id))
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return events, total

    def workflow_trail(self, workflow_id: str, limit: int = 200) -> List[AuditEventModel]:
        """Get the audit trail for a workflow, newest first."""
        return (
            self.db.query(AuditEventModel)
            .filter(AuditEventModel.workflow_id == workflow_id)
            .order_by(desc(AuditEventModel.created_at), desc(AuditEventModel.id))
            .limit(limit)
            .all()
        )

    def stats(
        self,
        hours: int = 24,
        now: Optional[datetime] = None,
        client_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Count events in the trailing window grouped by event type and actor type.

        When ``client_id`` is given only that company's events are counted.
        """
        since = (now or utc_now()) - timedelta(hours=hours)
        window = [AuditEventModel.created_at >= since]
        if client_id is not None:
            window.append(AuditEventModel.client_id == client_id)
        base = self.db.query(AuditEventModel).filter(*window)

        by_type = (
            self.db.query(AuditEventModel.event_type, func.count(AuditEventModel.id))
            .filter(*window)
            .group_by(AuditEventModel.event_type)
            .all()
        )
        by_actor = (
            self.db.query(AuditEventModel.actor_type, func.count(AuditEventModel.id))
            .filter(*window)
            .group_by(AuditEventModel.actor_type)
            .all()
        )
        return {
            "total_events": base.count(),
            "events_by_type": {event_type: count for event_type, count in by_type},
            "events_by_actor": {actor_type: count for actor_type, count in by_actor},
            "period": f"{hours}_hours",
            "generated_at": (now or utc_now()).isoformat(),
        }
