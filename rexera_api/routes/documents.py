"""
Document routes and the document tag vocabulary.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.base import get_db
from ..db.models import DocumentModel
from ..enums import DocumentStatus, DocumentType
from ..errors import APIErrors
from ..primitives import enum_value
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, parse_include, success
from ..schemas.documents import (
    DOCUMENT_SORT_FIELDS,
    DocumentCreate,
    DocumentUpdate,
    DocumentVersionCreate,
)
from ..services.documents import PREDEFINED_TAGS, DocumentService, search_tags
from ..services.workflows import WorkflowService

router = APIRouter(prefix="/api/documents", tags=["documents"])
tags_router = APIRouter(prefix="/api/tags", tags=["documents"])


def _load(service: DocumentService, document_id: str, user: AuthUser) -> DocumentModel:
    document = service.get(document_id, get_company_filter(user))
    if document is None:
        raise APIErrors.not_found("Document", document_id)
    return document


def _serialize(document: DocumentModel, include: Optional[str]) -> Dict[str, Any]:
    includes = parse_include(include)
    return document.to_dict(
        include_workflow="workflow" in includes,
        include_created_by="created_by_user" in includes,
    )


@router.get("")
async def list_documents(
    workflow_id: Optional[str] = None,
    document_type: Optional[DocumentType] = None,
    tags: Optional[str] = None,
    status: Optional[DocumentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    include: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_direction: str = Query("desc", alias="sortDirection", pattern="^(asc|desc)$"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if sort_by not in DOCUMENT_SORT_FIELDS:
        raise APIErrors.bad_request(
            f"Invalid sortBy value: {sort_by}", {"allowed": list(DOCUMENT_SORT_FIELDS)}
        )
    filters = {
        "workflow_id": workflow_id,
        "document_type": enum_value(document_type),
        "tags": tags,
        "status": enum_value(status),
    }
    documents, total = DocumentService(db).list(
        filters,
        company_id=get_company_filter(user),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    return paginated([_serialize(doc, include) for doc in documents], page, limit, total)


@router.post("", status_code=201)
async def create_document(
    body: DocumentCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = WorkflowService(db).resolve(body.workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", body.workflow_id)
    document = DocumentService(db).create(
        body.model_dump(), created_by=user.id, actor_name=user.display_name
    )
    return success(document.to_dict())


@router.get("/by-workflow/{workflow_id}")
async def list_workflow_documents(
    workflow_id: str,
    document_type: Optional[DocumentType] = None,
    tags: Optional[str] = None,
    status: Optional[DocumentStatus] = None,
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """All documents of one workflow, newest first."""
    workflow = WorkflowService(db).resolve(workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", workflow_id)
    documents = DocumentService(db).by_workflow(
        workflow.id,
        {"document_type": enum_value(document_type), "tags": tags, "status": enum_value(status)},
    )
    return success([_serialize(doc, include) for doc in documents], count=len(documents))


@router.get("/{document_id}")
async def get_document(
    document_id: str,
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    document = _load(DocumentService(db), document_id, user)
    return success(_serialize(document, include))


@router.patch("/{document_id}")
async def update_document(
    document_id: str,
    body: DocumentUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = DocumentService(db)
    document = _load(service, document_id, user)
    document = service.update(document, body.model_dump(exclude_unset=True))
    return success(document.to_dict())


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = DocumentService(db)
    document = _load(service, document_id, user)
    service.delete(document, actor_id=user.id, actor_name=user.display_name)
    return success({"id": document_id}, message="Document deleted successfully")


@router.post("/{document_id}/versions", status_code=201)
async def create_document_version(
    document_id: str,
    body: DocumentVersionCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = DocumentService(db)
    document = _load(service, document_id, user)
    document = service.create_version(
        document, body.model_dump(), actor_id=user.id, actor_name=user.display_name
    )
    return success(document.to_dict())


@tags_router.get("")
async def list_tags(user: AuthUser = Depends(get_current_user)) -> Dict[str, Any]:
    return success(PREDEFINED_TAGS, count=len(PREDEFINED_TAGS))


@tags_router.get("/search")
async def search_document_tags(
    q: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
) -> Dict[str, Any]:
    """Tag autocomplete."""
    if not q or len(q) > 50:
        raise APIErrors.bad_request(
            'Query parameter "q" is required and must be 1-50 characters'
        )
    matches = search_tags(q)
    return success(matches, count=len(matches))
