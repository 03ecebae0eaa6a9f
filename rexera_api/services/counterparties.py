"""
Counterparty service: lenders, HOAs, municipalities, utilities and tax authorities.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy import asc, desc, or_
from sqlalchemy.orm import Session

from ..db.audit_service import AuditService
from ..db.models import CounterpartyModel, WorkflowCounterpartyModel
from ..enums import AuditAction, AuditEventType
from .exceptions import CounterpartyInUseError

logger = structlog.get_logger()

COUNTERPARTY_UPDATE_FIELDS = ("name", "type", "email", "phone", "address", "contact_info")

MAX_SEARCH_RESULTS = 50


class CounterpartyService:
    """Service for managing counterparties."""

    def __init__(self, db: Session, audit: Optional[AuditService] = None):
        self.db = db
        self.audit = audit or AuditService(db)

    def get(self, counterparty_id: str) -> Optional[CounterpartyModel]:
        return self.db.get(CounterpartyModel, counterparty_id)

    def list(
        self,
        type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
        sort: str = "name",
        order: str = "asc",
    ) -> Tuple[List[CounterpartyModel], int]:
        query = self.db.query(CounterpartyModel)
        if type:
            query = query.filter(CounterpartyModel.type == type)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(CounterpartyModel.name.ilike(pattern), CounterpartyModel.email.ilike(pattern))
            )

        total = query.count()
        column = getattr(CounterpartyModel, sort)
        ordering = desc(column) if order == "desc" else asc(column)
        items = (
            query.order_by(ordering, CounterpartyModel.id)
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return items, total

    def search(
        self, q: str, type: Optional[str] = None, limit: int = 10
    ) -> List[CounterpartyModel]:
        """Autocomplete search over name, email and address. Name matches rank first."""
        pattern = f"%{q}%"
        query = self.db.query(CounterpartyModel).filter(
            or_(
                CounterpartyModel.name.ilike(pattern),
                CounterpartyModel.email.ilike(pattern),
                CounterpartyModel.address.ilike(pattern),
            )
        )
        if type:
            query = query.filter(CounterpartyModel.type == type)
        results = (
            query.order_by(CounterpartyModel.name)
            .limit(min(limit, MAX_SEARCH_RESULTS))
            .all()
        )
        needle = q.lower()
        results.sort(key=lambda cp: (needle not in cp.name.lower(), cp.name.lower()))
        return results

    def create(
        self, data: Dict[str, Any], actor_id: Optional[str] = None, actor_name: Optional[str] = None
    ) -> CounterpartyModel:
        counterparty = CounterpartyModel(
            name=data["name"],
            type=data["type"],
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            contact_info=data.get("contact_info") or {},
        )
        self.db.add(counterparty)
        self.db.commit()
        self.db.refresh(counterparty)
        if actor_id:
            self._audit(counterparty, AuditAction.CREATE.value, actor_id, actor_name)
        logger.info("Counterparty created", counterparty_id=counterparty.id, type=counterparty.type)
        return counterparty

    def update(self, counterparty: CounterpartyModel, changes: Dict[str, Any]) -> CounterpartyModel:
        for name in COUNTERPARTY_UPDATE_FIELDS:
            if name in changes and changes[name] is not None:
                setattr(counterparty, name, changes[name])
        self.db.commit()
        self.db.refresh(counterparty)
        return counterparty

    def delete(
        self,
        counterparty: CounterpartyModel,
        actor_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> None:
        """Delete a counterparty.

        Raises:
            CounterpartyInUseError: the counterparty is still linked to a workflow
        """
        in_use = (
            self.db.query(WorkflowCounterpartyModel.id)
            .filter(WorkflowCounterpartyModel.counterparty_id == counterparty.id)
            .first()
        )
        if in_use:
            raise CounterpartyInUseError(
                "Cannot delete counterparty with active workflow relationships"
            )
        if actor_id:
            self._audit(counterparty, AuditAction.DELETE.value, actor_id, actor_name)
        self.db.delete(counterparty)
        self.db.commit()

    def _audit(
        self,
        counterparty: CounterpartyModel,
        action: str,
        actor_id: str,
        actor_name: Optional[str],
    ) -> None:
        self.audit.log(
            AuditService.resource_event(
                AuditEventType.COUNTERPARTY_MANAGEMENT.value,
                actor_id,
                actor_name,
                action,
                "counterparty",
                counterparty.id,
                event_data={"name": counterparty.name, "type": counterparty.type},
            )
        )
