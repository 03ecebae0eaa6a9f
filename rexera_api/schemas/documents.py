"""Request schemas for documents."""

from typing import Any, Dict, List, Optional

from pydantic import Field, conint, constr

from ..enums import DocumentStatus, DocumentType
from .common import RexeraModel, UrlStr, UUIDStr

DOCUMENT_SORT_FIELDS = ("created_at", "updated_at", "filename", "file_size_bytes")


class DocumentCreate(RexeraModel):
    workflow_id: UUIDStr
    filename: constr(min_length=1, max_length=500)
    url: UrlStr
    file_size_bytes: Optional[conint(gt=0)] = None
    mime_type: Optional[str] = None
    document_type: DocumentType = DocumentType.WORKING
    tags: List[str] = Field(default_factory=list)
    upload_source: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    deliverable_data: Dict[str, Any] = Field(default_factory=dict)


class DocumentUpdate(RexeraModel):
    filename: Optional[constr(min_length=1, max_length=500)] = None
    document_type: Optional[DocumentType] = None
    tags: Optional[List[str]] = None
    status: Optional[DocumentStatus] = None
    metadata: Optional[Dict[str, Any]] = None
    deliverable_data: Optional[Dict[str, Any]] = None
    change_summary: Optional[str] = None


class DocumentVersionCreate(RexeraModel):
    url: UrlStr
    filename: Optional[constr(min_length=1, max_length=500)] = None
    file_size_bytes: Optional[conint(gt=0)] = None
    mime_type: Optional[str] = None
    change_summary: constr(min_length=1)
    metadata: Dict[str, Any] = Field(default_factory=dict)
