"""
Audit event routes.
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.audit_service import AuditService
from ..db.base import get_db
from ..enums import ActorType, AuditAction, AuditEventType
from ..errors import APIErrors, format_validation_errors
from ..primitives import enum_value, is_uuid
from ..schemas.audit_events import AuditEventCreate
from ..schemas.common import MAX_PAGE_SIZE, success
from ..services.workflows import WorkflowService

router = APIRouter(prefix="/api/audit-events", tags=["audit"])


@router.get("")
async def list_audit_events(
    workflow_id: Optional[str] = None,
    client_id: Optional[str] = None,
    actor_type: Optional[ActorType] = None,
    actor_id: Optional[str] = None,
    event_type: Optional[AuditEventType] = None,
    action: Optional[AuditAction] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    company_id = get_company_filter(user)
    filters = {
        "workflow_id": workflow_id,
        "client_id": company_id if company_id is not None else client_id,
        "actor_type": enum_value(actor_type),
        "actor_id": actor_id,
        "event_type": enum_value(event_type),
        "action": enum_value(action),
        "resource_type": resource_type,
        "resource_id": resource_id,
        "from_date": from_date,
        "to_date": to_date,
    }
    events, total = AuditService(db).list_events(filters, page=page, per_page=per_page)
    total_pages = math.ceil(total / per_page)
    return success(
        [event.to_dict() for event in events],
        pagination={
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    )


@router.post("", status_code=201)
async def create_audit_event(
    body: AuditEventCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    event = AuditService(db).create(body.model_dump())
    return success(event.to_dict())


@router.post("/batch", status_code=201)
async def create_audit_events_batch(
    request: Request,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Record several events. Nothing is written if any item is invalid."""
    try:
        body = await request.json()
    except ValueError:
        raise APIErrors.bad_request("Request body must be an array of audit events")
    if not isinstance(body, list):
        raise APIErrors.bad_request("Request body must be an array of audit events")

    events = []
    invalid = []
    for index, item in enumerate(body):
        try:
            events.append(AuditEventCreate.model_validate(item).model_dump())
        except ValidationError as e:
            invalid.append({"index": index, "errors": format_validation_errors(e.errors())})
    if invalid:
        raise APIErrors.bad_request("Invalid audit events in batch", invalid)

    AuditService(db).create_batch(events)
    return success(
        {"count": len(events)}, message="Audit events batch created successfully"
    )


@router.get("/stats")
async def audit_stats(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Event counts for the last 24 hours."""
    return success(AuditService(db).stats(hours=24, client_id=get_company_filter(user)))


@router.get("/workflow/{workflow_id}")
async def workflow_audit_trail(
    workflow_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if not is_uuid(workflow_id):
        raise APIErrors.bad_request("Invalid workflow ID format")
    workflow = WorkflowService(db).resolve(workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", workflow_id)
    events = AuditService(db).workflow_trail(workflow.id)
    return success(
        {"workflow_id": workflow_id, "audit_trail": [event.to_dict() for event in events]}
    )
