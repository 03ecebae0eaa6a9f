"""
Communication service: emails, calls and client chat messages attached to
workflows, with email threading.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session, selectinload

from ..db.audit_service import AuditService
from ..db.models import (
    ClientChatMetadataModel,
    CommunicationModel,
    EmailMetadataModel,
    PhoneMetadataModel,
    WorkflowModel,
)
from ..enums import (
    AuditAction,
    AuditEventType,
    CommunicationStatus,
    CommunicationType,
    Direction,
)
from ..primitives import as_utc, generate_uuid, isoformat

logger = structlog.get_logger()

NO_SUBJECT = "(No Subject)"
MESSAGE_ID_DOMAIN = "rexera.com"

LIST_FILTERS = (
    "workflow_id",
    "thread_id",
    "communication_type",
    "direction",
    "status",
    "sender_id",
)

_METADATA_MODELS = {
    "email_metadata": EmailMetadataModel,
    "phone_metadata": PhoneMetadataModel,
    "client_chat_metadata": ClientChatMetadataModel,
}


def reply_subject(subject: Optional[str]) -> str:
    """Prefix a subject with ``Re:`` unless it already has one."""
    subject = subject or ""
    if subject.lower().startswith("re:"):
        return subject
    return f"Re: {subject}"


def message_id_for(communication_id: str) -> str:
    return f"{communication_id}@{MESSAGE_ID_DOMAIN}"


class CommunicationService:
    """Service for managing communications."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)

    def _base_query(self, company_id: Optional[str] = None):
        query = self.db.query(CommunicationModel).options(
            selectinload(CommunicationModel.email_metadata),
            selectinload(CommunicationModel.phone_metadata),
            selectinload(CommunicationModel.client_chat_metadata),
        )
        if company_id is not None:
            query = query.join(WorkflowModel, CommunicationModel.workflow).filter(
                WorkflowModel.client_id == company_id
            )
        return query

    def get(
        self, communication_id: str, company_id: Optional[str] = None
    ) -> Optional[CommunicationModel]:
        return (
            self._base_query(company_id)
            .filter(CommunicationModel.id == communication_id)
            .first()
        )

    def list(
        self,
        filters: Dict[str, Any],
        company_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_direction: str = "desc",
    ) -> Tuple[List[CommunicationModel], int]:
        query = self._base_query(company_id).options(
            selectinload(CommunicationModel.sender),
            selectinload(CommunicationModel.workflow),
        )
        for name in LIST_FILTERS:
            if filters.get(name):
                query = query.filter(getattr(CommunicationModel, name) == filters[name])

        total = query.count()
        column = getattr(CommunicationModel, sort_by)
        order = asc(column) if sort_direction == "asc" else desc(column)
        items = (
            query.order_by(order, CommunicationModel.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def threads(self, workflow_id: str, company_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Group a workflow's emails into threads, most recently active first."""
        emails = (
            self._base_query(company_id)
            .filter(
                CommunicationModel.workflow_id == workflow_id,
                CommunicationModel.communication_type == CommunicationType.EMAIL.value,
            )
            .order_by(asc(CommunicationModel.created_at))
            .all()
        )

        grouped: Dict[str, List[CommunicationModel]] = {}
        for email in emails:
            grouped.setdefault(email.thread_id or email.id, []).append(email)

        threads = []
        for thread_id, messages in grouped.items():
            first = messages[0]
            last_activity = max(as_utc(message.created_at) for message in messages)
            participants = list(
                dict.fromkeys(m.recipient_email for m in messages if m.recipient_email)
            )
            threads.append(
                {
                    "thread_id": thread_id,
                    "subject": first.subject or NO_SUBJECT,
                    "communication_count": len(messages),
                    "last_activity": isoformat(last_activity),
                    "participants": participants,
                    "has_unread": any(
                        m.direction == Direction.INBOUND.value
                        and m.status != CommunicationStatus.READ.value
                        for m in messages
                    ),
                    "workflow_id": workflow_id,
                }
            )
        threads.sort(key=lambda thread: thread["last_activity"], reverse=True)
        return threads

    def create(
        self,
        data: Dict[str, Any],
        sender_id: str,
        actor_name: Optional[str] = None,
    ) -> CommunicationModel:
        """Create a communication and its type-specific metadata rows."""
        direction = data["direction"]
        communication = CommunicationModel(
            id=generate_uuid(),
            workflow_id=data.get("workflow_id"),
            thread_id=data.get("thread_id"),
            sender_id=sender_id,
            recipient_email=data.get("recipient_email"),
            subject=data.get("subject"),
            body=data["body"],
            communication_type=data["communication_type"],
            direction=direction,
            status=(
                CommunicationStatus.SENT.value
                if direction == Direction.OUTBOUND.value
                else CommunicationStatus.DELIVERED.value
            ),
            metadata_=data.get("metadata") or {},
        )
        for name, model in _METADATA_MODELS.items():
            if data.get(name) is not None:
                setattr(communication, name, model(**data[name]))

        return self._save_new(communication, sender_id, actor_name)

    def _save_new(
        self,
        communication: CommunicationModel,
        actor_id: str,
        actor_name: Optional[str],
        event_data: Optional[Dict[str, Any]] = None,
    ) -> CommunicationModel:
        self.db.add(communication)
        self.db.commit()
        self.db.refresh(communication)

        self.audit.log(
            AuditService.resource_event(
                AuditEventType.COMMUNICATION.value,
                actor_id,
                actor_name,
                AuditAction.CREATE.value,
                "communication",
                communication.id,
                workflow_id=communication.workflow_id,
                event_data={
                    "communication_type": communication.communication_type,
                    "direction": communication.direction,
                    **(event_data or {}),
                },
            )
        )
        logger.info(
            "Communication created",
            communication_id=communication.id,
            communication_type=communication.communication_type,
        )
        return communication

    def update(self, communication: CommunicationModel, changes: Dict[str, Any]) -> CommunicationModel:
        if changes.get("status") is not None:
            communication.status = changes["status"]
        if changes.get("metadata") is not None:
            communication.metadata_ = changes["metadata"]

        for name, model in _METADATA_MODELS.items():
            sub_changes = changes.get(name)
            if not sub_changes:
                continue
            values = {key: value for key, value in sub_changes.items() if value is not None}
            existing = getattr(communication, name)
            if existing is None:
                setattr(communication, name, model(**values))
            else:
                for key, value in values.items():
                    setattr(existing, key, value)

        self.db.commit()
        self.db.refresh(communication)
        return communication

    def delete(
        self,
        communication: CommunicationModel,
        actor_id: str,
        actor_name: Optional[str] = None,
    ) -> None:
        communication_id = communication.id
        workflow_id = communication.workflow_id
        self.db.delete(communication)
        self.db.commit()
        self.audit.log(
            AuditService.resource_event(
                AuditEventType.COMMUNICATION.value,
                actor_id,
                actor_name,
                AuditAction.DELETE.value,
                "communication",
                communication_id,
                workflow_id=workflow_id,
            )
        )

    def reply(
        self,
        original: CommunicationModel,
        data: Dict[str, Any],
        sender_id: str,
        actor_name: Optional[str] = None,
    ) -> CommunicationModel:
        """Reply within the original's thread, carrying the email headers forward."""
        reply_id = generate_uuid()
        original_email = original.email_metadata
        original_message_id = (
            original_email.message_id if original_email and original_email.message_id
            else original.id
        )
        references = list(original_email.email_references or []) if original_email else []
        references.append(original_message_id)

        communication = CommunicationModel(
            id=reply_id,
            workflow_id=original.workflow_id,
            thread_id=original.thread_id or original.id,
            sender_id=sender_id,
            recipient_email=data["recipient_email"],
            subject=reply_subject(original.subject),
            body=data["body"],
            communication_type=CommunicationType.EMAIL.value,
            direction=Direction.OUTBOUND.value,
            status=CommunicationStatus.SENT.value,
            metadata_={**(data.get("metadata") or {}), "include_team": data.get("include_team", False)},
            email_metadata=EmailMetadataModel(
                message_id=message_id_for(reply_id),
                in_reply_to=original_message_id,
                email_references=references,
            ),
        )
        return self._save_new(
            communication, sender_id, actor_name, {"reply_to": original.id}
        )

    def forward(
        self,
        original: CommunicationModel,
        data: Dict[str, Any],
        sender_id: str,
        actor_name: Optional[str] = None,
    ) -> CommunicationModel:
        """Forward as a new outbound email in a new thread on the same workflow."""
        forward_id = generate_uuid()
        attachments = (
            list(original.email_metadata.attachments or []) if original.email_metadata else []
        )
        communication = CommunicationModel(
            id=forward_id,
            workflow_id=original.workflow_id,
            thread_id=forward_id,
            sender_id=sender_id,
            recipient_email=data["recipient_email"],
            subject=data["subject"],
            body=data["body"],
            communication_type=CommunicationType.EMAIL.value,
            direction=Direction.OUTBOUND.value,
            status=CommunicationStatus.SENT.value,
            metadata_={
                **(data.get("metadata") or {}),
                "forwarded_from": original.id,
                "include_team": data.get("include_team", False),
            },
            email_metadata=EmailMetadataModel(
                message_id=message_id_for(forward_id),
                attachments=attachments,
            ),
        )
        return self._save_new(
            communication, sender_id, actor_name, {"forwarded_from": original.id}
        )
