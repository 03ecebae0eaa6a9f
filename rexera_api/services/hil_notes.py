"""
HIL note service: threaded internal notes on workflows with @mention notifications.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import asc
from sqlalchemy.orm import Session, selectinload

from ..db.audit_service import AuditService
from ..db.models import HilNoteModel, WorkflowModel
from ..enums import AuditAction, AuditEventType, NotificationType, PriorityLevel
from .exceptions import NotAuthorError
from .notifications import NotificationService

logger = structlog.get_logger()

DEFAULT_NOTE_LIMIT = 50


class HilNoteService:
    """Service for HIL notes."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)
        self.notifications = NotificationService(db)

    def get(self, note_id: str, company_id: Optional[str] = None) -> Optional[HilNoteModel]:
        query = self.db.query(HilNoteModel).options(
            selectinload(HilNoteModel.author),
            selectinload(HilNoteModel.replies).selectinload(HilNoteModel.author),
        )
        if company_id is not None:
            query = query.join(WorkflowModel, WorkflowModel.id == HilNoteModel.workflow_id).filter(
                WorkflowModel.client_id == company_id
            )
        return query.filter(HilNoteModel.id == note_id).first()

    def list(
        self,
        workflow_id: str,
        filters: Dict[str, Any],
        limit: int = DEFAULT_NOTE_LIMIT,
        offset: int = 0,
    ) -> Tuple[List[HilNoteModel], int]:
        """Notes of a workflow, oldest first. Only top-level notes unless ``parent_note_id`` is set."""
        query = (
            self.db.query(HilNoteModel)
            .options(
                selectinload(HilNoteModel.author),
                selectinload(HilNoteModel.replies).selectinload(HilNoteModel.author),
            )
            .filter(HilNoteModel.workflow_id == workflow_id)
        )
        if filters.get("parent_note_id"):
            query = query.filter(HilNoteModel.parent_note_id == filters["parent_note_id"])
        else:
            query = query.filter(HilNoteModel.parent_note_id.is_(None))
        if filters.get("is_resolved") is not None:
            query = query.filter(HilNoteModel.is_resolved == filters["is_resolved"])
        for name in ("priority", "author_id"):
            if filters.get(name):
                query = query.filter(getattr(HilNoteModel, name) == filters[name])

        total = query.count()
        notes = (
            query.order_by(asc(HilNoteModel.created_at), HilNoteModel.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return notes, total

    def create(
        self,
        data: Dict[str, Any],
        author_id: str,
        author_name: Optional[str] = None,
    ) -> HilNoteModel:
        note = HilNoteModel(
            workflow_id=data["workflow_id"],
            author_id=author_id,
            content=data["content"],
            priority=data.get("priority") or PriorityLevel.NORMAL.value,
            is_resolved=False,
            parent_note_id=data.get("parent_note_id"),
            mentions=list(data.get("mentions") or []),
        )
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)

        title = (
            "You were mentioned in a note reply"
            if note.parent_note_id
            else "You were mentioned in a note"
        )
        self.notify_mentions(
            note,
            note.mentions,
            title,
            f"{author_name or 'Someone'} mentioned you in a {note.priority} priority note",
        )
        self._audit(note, AuditAction.CREATE.value, author_id, author_name)
        logger.info("HIL note created", note_id=note.id, workflow_id=note.workflow_id)
        return note

    def reply(
        self,
        parent: HilNoteModel,
        data: Dict[str, Any],
        author_id: str,
        author_name: Optional[str] = None,
    ) -> HilNoteModel:
        """Reply to a note. The reply inherits the parent's workflow and priority."""
        return self.create(
            {
                "workflow_id": parent.workflow_id,
                "content": data["content"],
                "priority": parent.priority,
                "mentions": data.get("mentions") or [],
                "parent_note_id": parent.id,
            },
            author_id,
            author_name,
        )

    def update(
        self,
        note: HilNoteModel,
        changes: Dict[str, Any],
        user_id: str,
        user_name: Optional[str] = None,
    ) -> HilNoteModel:
        """Update a note. Only its author may do so.

        Raises:
            NotAuthorError: ``user_id`` is not the note's author
        """
        if note.author_id != user_id:
            raise NotAuthorError("You can only update your own notes")

        previous_mentions = set(note.mentions or [])
        for name in ("content", "priority", "is_resolved"):
            if changes.get(name) is not None:
                setattr(note, name, changes[name])
        if changes.get("mentions") is not None:
            note.mentions = list(changes["mentions"])
        self.db.commit()
        self.db.refresh(note)

        added = [user for user in note.mentions or [] if user not in previous_mentions]
        self.notify_mentions(
            note,
            added,
            "You were mentioned in an updated note",
            f"{user_name or 'Someone'} mentioned you in an updated note",
        )
        self._audit(note, AuditAction.UPDATE.value, user_id, user_name,
                    {"updated_fields": sorted(changes)})
        return note

    def delete(self, note: HilNoteModel, user_id: str, user_name: Optional[str] = None) -> None:
        """Delete a note and its replies. Only its author may do so.

        Raises:
            NotAuthorError: ``user_id`` is not the note's author
        """
        if note.author_id != user_id:
            raise NotAuthorError("You can only delete your own notes")
        self._audit(note, AuditAction.DELETE.value, user_id, user_name)
        self.db.delete(note)
        self.db.commit()

    def notify_mentions(
        self, note: HilNoteModel, user_ids: Iterable[str], title: str, message: str
    ) -> int:
        """Notify the mentioned users that have a profile."""
        recipients = self.notifications.existing_user_ids(user_ids)
        if not recipients:
            return 0
        self.notifications.notify_users(
            recipients,
            type=NotificationType.HIL_MENTION.value,
            priority=note.priority,
            title=title,
            message=message,
            action_url=f"/workflow/{note.workflow_id}",
            metadata={
                "note_id": note.id,
                "workflow_id": note.workflow_id,
                "author_id": note.author_id,
                "priority": note.priority,
            },
        )
        return len(recipients)

    def _audit(
        self,
        note: HilNoteModel,
        action: str,
        actor_id: str,
        actor_name: Optional[str],
        event_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.audit.log(
            AuditService.resource_event(
                AuditEventType.WORKFLOW_MANAGEMENT.value,
                actor_id,
                actor_name,
                action,
                "hil_note",
                note.id,
                workflow_id=note.workflow_id,
                event_data=event_data,
            )
        )
