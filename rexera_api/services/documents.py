"""
Document service: workflow documents, versions and the predefined tag vocabulary.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session, selectinload

from ..db.audit_service import AuditService
from ..db.models import DocumentModel, WorkflowModel
from ..enums import AuditAction, AuditEventType, DocumentStatus, DocumentType

logger = structlog.get_logger()

PREDEFINED_TAGS: List[str] = sorted(
    [
        # Document types
        "contract",
        "deed",
        "title",
        "insurance",
        "inspection",
        "appraisal",
        "survey",
        "disclosure",
        "amendment",
        "addendum",
        "closing",
        "escrow",
        "resale-cert",
        "lender-q",
        "hoa-docs",
        "ccnrs",
        # Document status
        "draft",
        "review",
        "approved",
        "signed",
        "executed",
        "final",
        # Process stage
        "pre-approval",
        "listing",
        "offer",
        "under-contract",
        "due-diligence",
        "financing",
        "closing-prep",
        "post-closing",
        # Urgency
        "urgent",
        "high-priority",
        "time-sensitive",
        # Client communication
        "client-review",
        "client-signature",
        "client-copy",
        # Legal and compliance
        "legal-review",
        "compliance",
        "regulatory",
        "notarized",
    ]
)

DOCUMENT_UPDATE_FIELDS = (
    "filename",
    "document_type",
    "tags",
    "status",
    "deliverable_data",
    "change_summary",
)


def search_tags(query: str) -> List[str]:
    """Predefined tags containing ``query``, case-insensitively."""
    needle = query.lower()
    return [tag for tag in PREDEFINED_TAGS if needle in tag.lower()]


def parse_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def _has_any_tag(document: DocumentModel, wanted: Iterable[str]) -> bool:
    return bool(set(document.tags or []) & set(wanted))


class DocumentService:
    """Service for managing documents."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)

    def _base_query(self, company_id: Optional[str] = None):
        query = self.db.query(DocumentModel)
        if company_id is not None:
            query = query.join(WorkflowModel, DocumentModel.workflow).filter(
                WorkflowModel.client_id == company_id
            )
        return query

    def get(self, document_id: str, company_id: Optional[str] = None) -> Optional[DocumentModel]:
        return (
            self._base_query(company_id)
            .options(
                selectinload(DocumentModel.workflow),
                selectinload(DocumentModel.created_by_user),
            )
            .filter(DocumentModel.id == document_id)
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
    ) -> Tuple[List[DocumentModel], int]:
        """List documents. Tag filtering matches documents carrying any of the tags."""
        query = self._base_query(company_id).options(
            selectinload(DocumentModel.workflow),
            selectinload(DocumentModel.created_by_user),
        )
        for name in ("workflow_id", "document_type", "status"):
            if filters.get(name):
                query = query.filter(getattr(DocumentModel, name) == filters[name])

        column = getattr(DocumentModel, sort_by)
        order = asc(column) if sort_direction == "asc" else desc(column)
        query = query.order_by(order, DocumentModel.id)
        offset = (page - 1) * limit

        tags = parse_tags(filters.get("tags"))
        if tags:
            documents = [doc for doc in query.all() if _has_any_tag(doc, tags)]
            return documents[offset:offset + limit], len(documents)

        total = query.count()
        return query.offset(offset).limit(limit).all(), total

    def by_workflow(
        self, workflow_id: str, filters: Optional[Dict[str, Any]] = None
    ) -> List[DocumentModel]:
        filters = filters or {}
        query = (
            self.db.query(DocumentModel)
            .options(selectinload(DocumentModel.created_by_user))
            .filter(DocumentModel.workflow_id == workflow_id)
        )
        for name in ("document_type", "status"):
            if filters.get(name):
                query = query.filter(getattr(DocumentModel, name) == filters[name])
        documents = query.order_by(desc(DocumentModel.created_at), DocumentModel.id).all()

        tags = parse_tags(filters.get("tags"))
        if tags:
            documents = [doc for doc in documents if _has_any_tag(doc, tags)]
        return documents

    def create(
        self,
        data: Dict[str, Any],
        created_by: str,
        actor_name: Optional[str] = None,
    ) -> DocumentModel:
        document = DocumentModel(
            workflow_id=data["workflow_id"],
            filename=data["filename"],
            url=data["url"],
            file_size_bytes=data.get("file_size_bytes"),
            mime_type=data.get("mime_type"),
            document_type=data.get("document_type") or DocumentType.WORKING.value,
            tags=data.get("tags") or [],
            upload_source=data.get("upload_source"),
            status=DocumentStatus.PENDING.value,
            metadata_=data.get("metadata") or {},
            deliverable_data=data.get("deliverable_data") or {},
            version=1,
            created_by=created_by,
        )
        self.db.add(document)
        self.db.commit()
        self.db.refresh(document)

        self._audit(document, AuditAction.CREATE.value, created_by, actor_name,
                    {"filename": document.filename, "document_type": document.document_type})
        logger.info("Document created", document_id=document.id, workflow_id=document.workflow_id)
        return document

    def update(self, document: DocumentModel, changes: Dict[str, Any]) -> DocumentModel:
        for name in DOCUMENT_UPDATE_FIELDS:
            if name in changes and changes[name] is not None:
                setattr(document, name, changes[name])
        if changes.get("metadata") is not None:
            document.metadata_ = changes["metadata"]
        self.db.commit()
        self.db.refresh(document)
        return document

    def delete(
        self,
        document: DocumentModel,
        actor_id: str,
        actor_name: Optional[str] = None,
    ) -> None:
        self._audit(document, AuditAction.DELETE.value, actor_id, actor_name,
                    {"filename": document.filename})
        self.db.delete(document)
        self.db.commit()

    def create_version(
        self,
        document: DocumentModel,
        data: Dict[str, Any],
        actor_id: str,
        actor_name: Optional[str] = None,
    ) -> DocumentModel:
        """Point the document at a new file, bumping its version and merging metadata."""
        previous_version = document.version
        document.version = (document.version or 1) + 1
        document.url = data["url"]
        document.change_summary = data["change_summary"]
        for name in ("filename", "file_size_bytes", "mime_type"):
            if data.get(name) is not None:
                setattr(document, name, data[name])
        merged = dict(document.metadata_ or {})
        merged.update(data.get("metadata") or {})
        document.metadata_ = merged

        self.db.commit()
        self.db.refresh(document)

        self._audit(document, AuditAction.UPDATE.value, actor_id, actor_name,
                    {"previous_version": previous_version, "new_version": document.version,
                     "change_summary": document.change_summary})
        return document

    def _audit(
        self,
        document: DocumentModel,
        action: str,
        actor_id: str,
        actor_name: Optional[str],
        event_data: Dict[str, Any],
    ) -> None:
        self.audit.log(
            AuditService.resource_event(
                AuditEventType.DOCUMENT_MANAGEMENT.value,
                actor_id,
                actor_name,
                action,
                "document",
                document.id,
                workflow_id=document.workflow_id,
                event_data=event_data,
            )
        )
