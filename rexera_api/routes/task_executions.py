"""
Task execution routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.base import get_db
from ..db.models import TaskExecutionModel, WorkflowModel
from ..enums import TaskStatus
from ..errors import APIErrors
from ..primitives import enum_value
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, parse_include, success
from ..schemas.task_executions import (
    TaskExecutionBulkCreate,
    TaskExecutionUpdate,
    TaskExecutionUpdateByType,
)
from ..services.exceptions import InvalidTransitionError
from ..services.task_executions import TaskExecutionService

router = APIRouter(prefix="/api/taskExecutions", tags=["task-executions"])


def _apply_update(
    service: TaskExecutionService,
    task: TaskExecutionModel,
    changes: Dict[str, Any],
    user: AuthUser,
) -> TaskExecutionModel:
    try:
        return service.update(task, changes, actor_id=user.id, actor_name=user.display_name)
    except InvalidTransitionError as e:
        raise APIErrors.conflict(
            str(e), {"current_status": e.current, "requested_status": e.target}
        )


@router.get("")
async def list_task_executions(
    workflow_id: Optional[str] = None,
    agent_id: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    includes = parse_include(include)
    tasks, total = TaskExecutionService(db).list(
        {"workflow_id": workflow_id, "agent_id": agent_id, "status": enum_value(status)},
        company_id=get_company_filter(user),
        page=page,
        limit=limit,
    )
    data = [
        task.to_dict(include_agent="agent" in includes, include_workflow="workflow" in includes)
        for task in tasks
    ]
    return paginated(data, page, limit, total)


@router.post("/bulk", status_code=201)
async def bulk_create_task_executions(
    body: TaskExecutionBulkCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Create several tasks at once, typically the full plan of a new workflow."""
    items = [task.model_dump() for task in body.task_executions]
    workflow_ids = {item["workflow_id"] for item in items}
    workflows = db.query(WorkflowModel).filter(WorkflowModel.id.in_(workflow_ids)).all()
    found = {workflow.id: workflow for workflow in workflows}

    missing = sorted(workflow_ids - set(found))
    if missing:
        raise APIErrors.not_found("Workflow", missing[0])

    company_id = get_company_filter(user)
    if company_id is not None and any(wf.client_id != company_id for wf in workflows):
        raise APIErrors.forbidden("Cannot create tasks for another company's workflows")

    tasks = TaskExecutionService(db).create_many(items)
    return success([task.to_dict() for task in tasks], count=len(tasks))


@router.patch("/by-workflow-and-type")
async def update_task_by_workflow_and_type(
    body: TaskExecutionUpdateByType,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Update the task identified by ``(workflow_id, task_type)``."""
    if not body.workflow_id or not body.task_type:
        raise APIErrors.bad_request("workflow_id and task_type are required")

    service = TaskExecutionService(db)
    task = service.get_by_workflow_and_type(
        body.workflow_id, body.task_type, get_company_filter(user)
    )
    if task is None:
        raise APIErrors.not_found(
            f"Task execution of type '{body.task_type}' in workflow {body.workflow_id}"
        )
    changes = body.model_dump(exclude_unset=True, exclude={"workflow_id", "task_type"})
    task = _apply_update(service, task, changes, user)
    return success(task.to_dict(include_agent=True))


@router.get("/{task_id}")
async def get_task_execution(
    task_id: str,
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    task = TaskExecutionService(db).get(task_id, get_company_filter(user))
    if task is None:
        raise APIErrors.not_found("Task execution", task_id)
    includes = parse_include(include)
    return success(
        task.to_dict(include_agent=True, include_workflow="workflow" in includes)
    )


@router.patch("/{task_id}")
async def update_task_execution(
    task_id: str,
    body: TaskExecutionUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = TaskExecutionService(db)
    task = service.get(task_id, get_company_filter(user))
    if task is None:
        raise APIErrors.not_found("Task execution", task_id)
    task = _apply_update(service, task, body.model_dump(exclude_unset=True), user)
    return success(task.to_dict(include_agent=True))
