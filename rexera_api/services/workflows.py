"""
Workflow services: workflows and their counterparty relationships.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import Integer, asc, cast, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..db.audit_service import AuditService
from ..db.models import (
    CounterpartyModel,
    TaskExecutionModel,
    WorkflowCounterpartyModel,
    WorkflowModel,
)
from ..enums import AuditAction, TaskStatus, WorkflowCounterpartyStatus, WorkflowStatus
from ..primitives import is_counterparty_allowed_for_workflow, is_uuid, utc_now
from .exceptions import CounterpartyNotAllowedError, DuplicateRelationshipError

logger = structlog.get_logger()

FIRST_HUMAN_READABLE_ID = 1000

WORKFLOW_UPDATE_FIELDS = (
    "title",
    "description",
    "status",
    "priority",
    "assigned_to",
    "due_date",
    "completed_at",
)
# Fields a PATCH may clear with null; null is ignored for the rest
WORKFLOW_NULLABLE_FIELDS = frozenset({"description", "assigned_to", "due_date", "completed_at"})

# Concurrent creates can race for the same human readable id
CREATE_ATTEMPTS = 3


class WorkflowService:
    """Service for managing workflows in the database."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)

    def get(self, workflow_id: str) -> Optional[WorkflowModel]:
        return self.db.get(WorkflowModel, workflow_id)

    def resolve(
        self, identifier: str, company_id: Optional[str] = None
    ) -> Optional[WorkflowModel]:
        """Look up a workflow by UUID or human-readable id.

        Args:
            identifier: UUID or human_readable_id
            company_id: When set, workflows of other companies are treated as missing

        Returns:
            The workflow, or None
        """
        query = self.db.query(WorkflowModel).options(
            selectinload(WorkflowModel.client),
            selectinload(WorkflowModel.task_executions).selectinload(TaskExecutionModel.agent),
        )
        if is_uuid(identifier):
            query = query.filter(WorkflowModel.id == identifier.lower())
        else:
            query = query.filter(WorkflowModel.human_readable_id == identifier)
        if company_id is not None:
            query = query.filter(WorkflowModel.client_id == company_id)
        return query.first()

    def next_human_readable_id(self) -> str:
        """Next sequential numeric id, starting at 1000."""
        current = self.db.query(
            func.max(cast(WorkflowModel.human_readable_id, Integer))
        ).scalar()
        return str(current + 1 if current is not None else FIRST_HUMAN_READABLE_ID)

    def create(
        self,
        data: Dict[str, Any],
        created_by: Optional[str],
        actor_name: Optional[str] = None,
    ) -> WorkflowModel:
        """Create a new workflow from validated request data.

        A unique-constraint clash on ``human_readable_id`` is retried with a
        fresh id; any other integrity error propagates.
        """
        for attempt in range(1, CREATE_ATTEMPTS + 1):
            workflow = WorkflowModel(
                human_readable_id=self.next_human_readable_id(),
                workflow_type=data["workflow_type"],
                client_id=data["client_id"],
                title=data["title"],
                description=data.get("description"),
                priority=data.get("priority") or "NORMAL",
                metadata_=data.get("metadata") or {},
                due_date=data.get("due_date"),
                created_by=data.get("created_by") or created_by,
                status=WorkflowStatus.PENDING.value,
            )
            self.db.add(workflow)
            try:
                self.db.commit()
                break
            except IntegrityError as e:
                self.db.rollback()
                if attempt == CREATE_ATTEMPTS or "human_readable_id" not in str(e.orig):
                    raise
                logger.warning("Human readable id taken, retrying", attempt=attempt)
        self.db.refresh(workflow)
        logger.info(
            "Workflow created",
            workflow_id=workflow.id,
            human_readable_id=workflow.human_readable_id,
            workflow_type=workflow.workflow_type,
        )
        if created_by:
            self.audit.log(
                AuditService.workflow_event(
                    created_by,
                    actor_name,
                    AuditAction.CREATE.value,
                    workflow.id,
                    workflow.client_id,
                    {"workflow_type": workflow.workflow_type, "title": workflow.title},
                )
            )
        return workflow

    def list(
        self,
        filters: Dict[str, Any],
        company_id: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_direction: str = "desc",
        include_tasks: bool = False,
    ) -> Tuple[List[WorkflowModel], int]:
        """List workflows with filters, sorting and pagination.

        Sorting by ``interrupt_count`` happens in memory over every matching
        workflow before the page is cut.
        """
        query = self.db.query(WorkflowModel).options(selectinload(WorkflowModel.client))
        if include_tasks or sort_by == "interrupt_count":
            query = query.options(
                selectinload(WorkflowModel.task_executions).selectinload(
                    TaskExecutionModel.agent
                )
            )

        for name in ("workflow_type", "status", "assigned_to", "priority"):
            if filters.get(name):
                query = query.filter(getattr(WorkflowModel, name) == filters[name])

        if company_id is not None:
            query = query.filter(WorkflowModel.client_id == company_id)
        elif filters.get("client_id"):
            query = query.filter(WorkflowModel.client_id == filters["client_id"])

        total = query.count()
        offset = (page - 1) * limit
        ascending = sort_direction == "asc"

        if sort_by == "interrupt_count":
            workflows = query.order_by(desc(WorkflowModel.created_at)).all()
            workflows.sort(key=lambda wf: wf.interrupt_count, reverse=not ascending)
            return workflows[offset:offset + limit], total

        column = getattr(WorkflowModel, sort_by)
        order = asc(column) if ascending else desc(column)
        workflows = (
            query.order_by(order, WorkflowModel.id).offset(offset).limit(limit).all()
        )
        return workflows, total

    def update(
        self,
        workflow: WorkflowModel,
        changes: Dict[str, Any],
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> WorkflowModel:
        """Apply a partial update. Keys absent from ``changes`` are left alone."""
        previous_status = workflow.status
        for name in WORKFLOW_UPDATE_FIELDS:
            if name not in changes:
                continue
            if changes[name] is None and name not in WORKFLOW_NULLABLE_FIELDS:
                continue
            setattr(workflow, name, changes[name])
        if "metadata" in changes and changes["metadata"] is not None:
            workflow.metadata_ = changes["metadata"]
        if (
            changes.get("status") == WorkflowStatus.COMPLETED.value
            and workflow.completed_at is None
        ):
            workflow.completed_at = utc_now()
        self.db.commit()
        self.db.refresh(workflow)

        if actor_id:
            event_data: Dict[str, Any] = {"updated_fields": sorted(changes)}
            if workflow.status != previous_status:
                event_data["previous_status"] = previous_status
                event_data["new_status"] = workflow.status
            self.audit.log(
                AuditService.workflow_event(
                    actor_id,
                    actor_name,
                    AuditAction.UPDATE.value,
                    workflow.id,
                    workflow.client_id,
                    event_data,
                )
            )
        return workflow

    def merge_metadata(self, workflow: WorkflowModel, extra: Dict[str, Any]) -> None:
        """Merge keys into the workflow metadata. The caller commits."""
        merged = dict(workflow.metadata_ or {})
        merged.update(extra)
        workflow.metadata_ = merged

    def record_n8n_start(self, workflow: WorkflowModel, execution_id: str) -> WorkflowModel:
        workflow.n8n_execution_id = execution_id
        workflow.n8n_started_at = utc_now()
        workflow.n8n_status = "running"
        self.db.commit()
        self.db.refresh(workflow)
        return workflow

    def set_n8n_status(self, workflow: WorkflowModel, status: str) -> WorkflowModel:
        workflow.n8n_status = status
        self.db.commit()
        self.db.refresh(workflow)
        return workflow

    def sync_status_from_tasks(self, workflow: WorkflowModel) -> bool:
        """Derive workflow progress from its tasks. The caller commits.

        A pending workflow moves to IN_PROGRESS once any task has started; a
        workflow whose tasks are all COMPLETED becomes COMPLETED.

        Returns:
            True if the workflow status changed
        """
        tasks = list(workflow.task_executions)
        if not tasks:
            return False

        if all(task.status == TaskStatus.COMPLETED.value for task in tasks):
            if workflow.status != WorkflowStatus.COMPLETED.value:
                workflow.status = WorkflowStatus.COMPLETED.value
                workflow.completed_at = workflow.completed_at or utc_now()
                return True
            return False

        if workflow.status == WorkflowStatus.PENDING.value and any(
            task.started_at is not None or task.status != TaskStatus.PENDING.value
            for task in tasks
        ):
            workflow.status = WorkflowStatus.IN_PROGRESS.value
            return True
        return False


class WorkflowCounterpartyService:
    """Service for workflow <-> counterparty relationships."""

    def __init__(self, db: Session):
        self.db = db

    def list(
        self, workflow_id: str, status: Optional[str] = None
    ) -> List[WorkflowCounterpartyModel]:
        query = (
            self.db.query(WorkflowCounterpartyModel)
            .options(selectinload(WorkflowCounterpartyModel.counterparty))
            .filter(WorkflowCounterpartyModel.workflow_id == workflow_id)
        )
        if status:
            query = query.filter(WorkflowCounterpartyModel.status == status)
        return query.order_by(desc(WorkflowCounterpartyModel.created_at)).all()

    def get(self, workflow_id: str, relationship_id: str) -> Optional[WorkflowCounterpartyModel]:
        return (
            self.db.query(WorkflowCounterpartyModel)
            .filter(
                WorkflowCounterpartyModel.id == relationship_id,
                WorkflowCounterpartyModel.workflow_id == workflow_id,
            )
            .first()
        )

    def add(
        self,
        workflow: WorkflowModel,
        counterparty: CounterpartyModel,
        status: str = WorkflowCounterpartyStatus.PENDING.value,
    ) -> WorkflowCounterpartyModel:
        """Link a counterparty to a workflow.

        Raises:
            CounterpartyNotAllowedError: type mismatch for the workflow type
            DuplicateRelationshipError: the pair is already linked
        """
        if not is_counterparty_allowed_for_workflow(counterparty.type, workflow.workflow_type):
            raise CounterpartyNotAllowedError(counterparty.type, workflow.workflow_type)

        existing = (
            self.db.query(WorkflowCounterpartyModel)
            .filter(
                WorkflowCounterpartyModel.workflow_id == workflow.id,
                WorkflowCounterpartyModel.counterparty_id == counterparty.id,
            )
            .first()
        )
        if existing:
            raise DuplicateRelationshipError(
                "Counterparty is already associated with this workflow"
            )

        link = WorkflowCounterpartyModel(
            workflow_id=workflow.id, counterparty_id=counterparty.id, status=status
        )
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateRelationshipError(
                "Counterparty is already associated with this workflow"
            ) from e
        self.db.refresh(link)
        return link

    def update_status(
        self, link: WorkflowCounterpartyModel, status: str
    ) -> WorkflowCounterpartyModel:
        link.status = status
        self.db.commit()
        self.db.refresh(link)
        return link

    def remove(self, link: WorkflowCounterpartyModel) -> None:
        self.db.delete(link)
        self.db.commit()
