"""
HIL note routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.base import get_db
from ..db.models import HilNoteModel
from ..enums import PriorityLevel
from ..errors import APIErrors
from ..primitives import enum_value
from ..schemas.common import MAX_PAGE_SIZE, parse_include, success
from ..schemas.hil_notes import HilNoteCreate, HilNoteReply, HilNoteUpdate
from ..services.exceptions import NotAuthorError
from ..services.hil_notes import DEFAULT_NOTE_LIMIT, HilNoteService
from ..services.workflows import WorkflowService

router = APIRouter(prefix="/api/hil-notes", tags=["hil-notes"])


def _load(service: HilNoteService, note_id: str, user: AuthUser) -> HilNoteModel:
    note = service.get(note_id, get_company_filter(user))
    if note is None:
        raise APIErrors.not_found("HIL note", note_id)
    return note


@router.get("")
async def list_notes(
    workflow_id: Optional[str] = None,
    is_resolved: Optional[bool] = None,
    priority: Optional[PriorityLevel] = None,
    author_id: Optional[str] = None,
    parent_note_id: Optional[str] = None,
    limit: int = Query(DEFAULT_NOTE_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Notes of one workflow. Top-level notes only unless ``parent_note_id`` is given."""
    if not workflow_id:
        raise APIErrors.bad_request("workflow_id query parameter is required")
    workflow = WorkflowService(db).resolve(workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", workflow_id)

    includes = parse_include(include)
    notes, total = HilNoteService(db).list(
        workflow.id,
        {
            "is_resolved": is_resolved,
            "priority": enum_value(priority),
            "author_id": author_id,
            "parent_note_id": parent_note_id,
        },
        limit=limit,
        offset=offset,
    )
    data = [
        note.to_dict(include_author="author" in includes, include_replies="replies" in includes)
        for note in notes
    ]
    return success(data, pagination={"limit": limit, "offset": offset, "total": total})


@router.get("/{note_id}")
async def get_note(
    note_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    note = _load(HilNoteService(db), note_id, user)
    return success(note.to_dict(include_author=True, include_replies=True))


@router.post("", status_code=201)
async def create_note(
    body: HilNoteCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = WorkflowService(db).resolve(body.workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", body.workflow_id)
    service = HilNoteService(db)
    if body.parent_note_id and service.get(body.parent_note_id) is None:
        raise APIErrors.not_found("Parent note", body.parent_note_id)

    note = service.create(body.model_dump(), author_id=user.id, author_name=user.display_name)
    return success(note.to_dict(include_author=True))


@router.patch("/{note_id}")
async def update_note(
    note_id: str,
    body: HilNoteUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = HilNoteService(db)
    note = _load(service, note_id, user)
    try:
        note = service.update(
            note, body.model_dump(exclude_unset=True), user.id, user.display_name
        )
    except NotAuthorError as e:
        raise APIErrors.forbidden(str(e))
    return success(note.to_dict(include_author=True))


@router.post("/{note_id}/reply", status_code=201)
async def reply_to_note(
    note_id: str,
    body: HilNoteReply,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = HilNoteService(db)
    parent = _load(service, note_id, user)
    reply = service.reply(parent, body.model_dump(), author_id=user.id, author_name=user.display_name)
    return success(reply.to_dict(include_author=True))


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = HilNoteService(db)
    note = _load(service, note_id, user)
    try:
        service.delete(note, user.id, user.display_name)
    except NotAuthorError as e:
        raise APIErrors.forbidden(str(e))
    return success({"id": note_id}, message="Note deleted successfully")
