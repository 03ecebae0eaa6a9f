"""
Communication routes: messages, email threads, replies and forwards.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.base import get_db
from ..db.models import CommunicationModel
from ..enums import CommunicationStatus, CommunicationType, Direction
from ..errors import APIErrors
from ..primitives import enum_value
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, parse_include, success
from ..schemas.communications import (
    COMMUNICATION_SORT_FIELDS,
    CommunicationCreate,
    CommunicationForward,
    CommunicationReply,
    CommunicationUpdate,
)
from ..services.communications import CommunicationService
from ..services.workflows import WorkflowService

router = APIRouter(prefix="/api/communications", tags=["communications"])


def _load(service: CommunicationService, communication_id: str, user: AuthUser) -> CommunicationModel:
    communication = service.get(communication_id, get_company_filter(user))
    if communication is None:
        raise APIErrors.not_found("Communication", communication_id)
    return communication


@router.get("")
async def list_communications(
    workflow_id: Optional[str] = None,
    thread_id: Optional[str] = None,
    communication_type: Optional[CommunicationType] = None,
    direction: Optional[Direction] = None,
    status: Optional[CommunicationStatus] = None,
    sender_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    include: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_direction: str = Query("desc", alias="sortDirection", pattern="^(asc|desc)$"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if sort_by not in COMMUNICATION_SORT_FIELDS:
        raise APIErrors.bad_request(
            f"Invalid sortBy value: {sort_by}", {"allowed": list(COMMUNICATION_SORT_FIELDS)}
        )
    includes = parse_include(include)
    filters = {
        "workflow_id": workflow_id,
        "thread_id": thread_id,
        "communication_type": enum_value(communication_type),
        "direction": enum_value(direction),
        "status": enum_value(status),
        "sender_id": sender_id,
    }
    items, total = CommunicationService(db).list(
        filters,
        company_id=get_company_filter(user),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_direction=sort_direction,
    )
    data = [
        item.to_dict(
            include_sender="sender" in includes, include_workflow="workflow" in includes
        )
        for item in items
    ]
    return paginated(data, page, limit, total)


@router.get("/threads")
async def list_email_threads(
    workflow_id: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Email threads of a workflow, most recently active first."""
    if not workflow_id:
        raise APIErrors.bad_request("workflow_id query parameter is required")
    threads = CommunicationService(db).threads(workflow_id, get_company_filter(user))
    return success(threads)


@router.post("", status_code=201)
async def create_communication(
    body: CommunicationCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if body.workflow_id:
        workflow = WorkflowService(db).resolve(body.workflow_id, get_company_filter(user))
        if workflow is None:
            raise APIErrors.not_found("Workflow", body.workflow_id)
    communication = CommunicationService(db).create(
        body.model_dump(), sender_id=user.id, actor_name=user.display_name
    )
    return success(communication.to_dict())


@router.get("/{communication_id}")
async def get_communication(
    communication_id: str,
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    communication = _load(CommunicationService(db), communication_id, user)
    includes = parse_include(include)
    return success(
        communication.to_dict(
            include_sender="sender" in includes, include_workflow="workflow" in includes
        )
    )


@router.patch("/{communication_id}")
async def update_communication(
    communication_id: str,
    body: CommunicationUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CommunicationService(db)
    communication = _load(service, communication_id, user)
    communication = service.update(communication, body.model_dump(exclude_unset=True))
    return success(communication.to_dict())


@router.delete("/{communication_id}")
async def delete_communication(
    communication_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CommunicationService(db)
    communication = _load(service, communication_id, user)
    service.delete(communication, actor_id=user.id, actor_name=user.display_name)
    return success({"id": communication_id}, message="Communication deleted successfully")


@router.post("/{communication_id}/reply", status_code=201)
async def reply_to_communication(
    communication_id: str,
    body: CommunicationReply,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CommunicationService(db)
    original = _load(service, communication_id, user)
    reply = service.reply(original, body.model_dump(), sender_id=user.id, actor_name=user.display_name)
    return success(reply.to_dict())


@router.post("/{communication_id}/forward", status_code=201)
async def forward_communication(
    communication_id: str,
    body: CommunicationForward,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CommunicationService(db)
    original = _load(service, communication_id, user)
    forwarded = service.forward(
        original, body.model_dump(), sender_id=user.id, actor_name=user.display_name
    )
    return success(forwarded.to_dict())
