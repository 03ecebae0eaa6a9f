"""
Workflow routes, including workflow counterparties and n8n execution control.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user
from ..db.base import get_db
from ..db.models import WorkflowModel
from ..enums import PriorityLevel, WorkflowCounterpartyStatus, WorkflowStatus, WorkflowType
from ..errors import APIErrors
from ..integrations.n8n import N8nApiError, N8nClient, N8nError, get_n8n_client
from ..primitives import enum_value, isoformat
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, parse_include, success
from ..schemas.workflows import (
    WORKFLOW_SORT_FIELDS,
    WorkflowCounterpartyCreate,
    WorkflowCounterpartyUpdate,
    WorkflowCreate,
    WorkflowUpdate,
)
from ..services.counterparties import CounterpartyService
from ..services.exceptions import CounterpartyNotAllowedError, DuplicateRelationshipError
from ..services.workflows import WorkflowCounterpartyService, WorkflowService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/workflows", tags=["workflows"])


def _load_workflow(
    db: Session, workflow_id: str, user: AuthUser
) -> WorkflowModel:
    workflow = WorkflowService(db).resolve(workflow_id, get_company_filter(user))
    if workflow is None:
        raise APIErrors.not_found("Workflow", workflow_id)
    return workflow


async def _start_payoff_execution(
    db: Session, workflow: WorkflowModel, n8n: N8nClient
) -> None:
    """Kick off the n8n payoff workflow. Failures are logged only."""
    try:
        execution = await n8n.trigger_payoff_workflow(
            workflow.id, workflow.workflow_type, workflow.client_id, workflow.metadata_
        )
    except (N8nError, N8nApiError) as e:
        logger.error("Failed to trigger n8n workflow", workflow_id=workflow.id, error=str(e))
        return
    execution_id = execution.get("id")
    if execution_id:
        WorkflowService(db).record_n8n_start(workflow, str(execution_id))


@router.get("")
async def list_workflows(
    workflow_type: Optional[WorkflowType] = None,
    status: Optional[WorkflowStatus] = None,
    client_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
    priority: Optional[PriorityLevel] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    include: Optional[str] = None,
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_direction: str = Query("desc", alias="sortDirection", pattern="^(asc|desc)$"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """List workflows visible to the caller."""
    if sort_by not in WORKFLOW_SORT_FIELDS:
        raise APIErrors.bad_request(
            f"Invalid sortBy value: {sort_by}", {"allowed": list(WORKFLOW_SORT_FIELDS)}
        )
    includes = parse_include(include)
    filters = {
        "workflow_type": enum_value(workflow_type),
        "status": enum_value(status),
        "client_id": client_id,
        "assigned_to": assigned_to,
        "priority": enum_value(priority),
    }
    workflows, total = WorkflowService(db).list(
        filters,
        company_id=get_company_filter(user),
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_direction=sort_direction,
        include_tasks="tasks" in includes,
    )
    data = [
        wf.to_dict(include_client="client" in includes, include_tasks="tasks" in includes)
        for wf in workflows
    ]
    return paginated(data, page, limit, total)


@router.post("", status_code=201)
async def create_workflow(
    body: WorkflowCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n: N8nClient = Depends(get_n8n_client),
) -> Dict[str, Any]:
    """Create a workflow and, for payoff requests, start its n8n execution."""
    company_id = get_company_filter(user)
    if company_id is not None and body.client_id != company_id:
        raise APIErrors.forbidden("Cannot create workflows for another company")

    service = WorkflowService(db)
    workflow = service.create(body.model_dump(), created_by=user.id, actor_name=user.display_name)

    if workflow.workflow_type == WorkflowType.PAYOFF_REQUEST.value and n8n.enabled:
        await _start_payoff_execution(db, workflow, n8n)

    workflow = service.resolve(workflow.id)
    return success(workflow.to_dict(include_client=True, include_tasks=True))


@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Get a workflow by UUID or human-readable id."""
    workflow = _load_workflow(db, workflow_id, user)
    return success(workflow.to_dict(include_client=True, include_tasks=True))


@router.patch("/{workflow_id}")
async def update_workflow(
    workflow_id: str,
    body: WorkflowUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    workflow = WorkflowService(db).update(
        workflow,
        body.model_dump(exclude_unset=True),
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return success(workflow.to_dict(include_client=True, include_tasks=True))


@router.get("/{workflow_id}/n8n-status")
async def get_n8n_status(
    workflow_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n: N8nClient = Depends(get_n8n_client),
) -> Dict[str, Any]:
    """Workflow status alongside the status of its n8n execution."""
    workflow = _load_workflow(db, workflow_id, user)
    data: Dict[str, Any] = {
        "workflowId": workflow.id,
        "workflowStatus": workflow.status,
        "n8nEnabled": n8n.enabled,
        "n8nExecutionId": workflow.n8n_execution_id,
        "n8nStatus": workflow.n8n_status,
        "n8nStartedAt": isoformat(workflow.n8n_started_at),
    }
    if workflow.n8n_execution_id and n8n.enabled:
        try:
            data["n8nExecution"] = await n8n.get_execution(workflow.n8n_execution_id)
        except (N8nError, N8nApiError) as e:
            logger.warning(
                "Failed to fetch n8n execution",
                workflow_id=workflow.id,
                execution_id=workflow.n8n_execution_id,
                error=str(e),
            )
            data["n8nError"] = str(e)
    return success(data)


@router.post("/{workflow_id}/cancel-n8n")
async def cancel_n8n_execution(
    workflow_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    n8n: N8nClient = Depends(get_n8n_client),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    if not n8n.enabled:
        raise APIErrors.bad_request("n8n integration is not enabled")
    if not workflow.n8n_execution_id:
        raise APIErrors.bad_request("No n8n execution found for this workflow")

    try:
        await n8n.cancel_execution(workflow.n8n_execution_id)
    except N8nApiError as e:
        raise APIErrors.bad_request(f"Failed to cancel n8n execution: {e}", e.data)
    except N8nError as e:
        raise APIErrors.service_unavailable("n8n") from e

    WorkflowService(db).set_n8n_status(workflow, "canceled")
    return success(
        {"workflowId": workflow.id, "n8nExecutionId": workflow.n8n_execution_id},
        message="n8n execution canceled",
    )


# Workflow counterparties


@router.get("/{workflow_id}/counterparties")
async def list_workflow_counterparties(
    workflow_id: str,
    status: Optional[WorkflowCounterpartyStatus] = None,
    include: Optional[str] = None,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    links = WorkflowCounterpartyService(db).list(workflow.id, enum_value(status))
    include_counterparty = "counterparty" in parse_include(include)
    return success([link.to_dict(include_counterparty=include_counterparty) for link in links])


@router.post("/{workflow_id}/counterparties", status_code=201)
async def add_workflow_counterparty(
    workflow_id: str,
    body: WorkflowCounterpartyCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    counterparty = CounterpartyService(db).get(body.counterparty_id)
    if counterparty is None:
        raise APIErrors.not_found("Counterparty", body.counterparty_id)

    try:
        link = WorkflowCounterpartyService(db).add(workflow, counterparty, body.status)
    except CounterpartyNotAllowedError as e:
        raise APIErrors.bad_request(str(e))
    except DuplicateRelationshipError as e:
        raise APIErrors.conflict(str(e))
    return success(link.to_dict(include_counterparty=True))


@router.patch("/{workflow_id}/counterparties/{relationship_id}")
async def update_workflow_counterparty(
    workflow_id: str,
    relationship_id: str,
    body: WorkflowCounterpartyUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    service = WorkflowCounterpartyService(db)
    link = service.get(workflow.id, relationship_id)
    if link is None:
        raise APIErrors.not_found("Workflow counterparty", relationship_id)
    link = service.update_status(link, body.status)
    return success(link.to_dict(include_counterparty=True))


@router.delete("/{workflow_id}/counterparties/{relationship_id}")
async def remove_workflow_counterparty(
    workflow_id: str,
    relationship_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    workflow = _load_workflow(db, workflow_id, user)
    service = WorkflowCounterpartyService(db)
    link = service.get(workflow.id, relationship_id)
    if link is None:
        raise APIErrors.not_found("Workflow counterparty", relationship_id)
    service.remove(link)
    return success({"id": relationship_id}, message="Counterparty removed from workflow")
