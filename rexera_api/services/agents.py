"""
Agents and clients: read-mostly reference data.
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy.orm import Session

from ..db.models import AgentModel, ClientModel

logger = structlog.get_logger()


class AgentService:
    """Service for the registered AI agents."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, agent_id: str) -> Optional[AgentModel]:
        return self.db.get(AgentModel, agent_id)

    def list(
        self,
        is_active: Optional[bool] = None,
        type: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[AgentModel], int]:
        query = self.db.query(AgentModel)
        if is_active is not None:
            query = query.filter(AgentModel.is_active == is_active)
        if type:
            query = query.filter(AgentModel.type == type)

        total = query.count()
        agents = query.order_by(AgentModel.name).offset((page - 1) * limit).limit(limit).all()
        return agents, total

    def update(self, agent: AgentModel, changes: Dict[str, Any]) -> AgentModel:
        if changes.get("is_active") is not None:
            agent.is_active = changes["is_active"]
        if changes.get("configuration") is not None:
            agent.configuration = changes["configuration"]
        self.db.commit()
        self.db.refresh(agent)
        logger.info("Agent updated", agent_id=agent.id, is_active=agent.is_active)
        return agent


class ClientService:
    """Service for client companies."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, client_id: str) -> Optional[ClientModel]:
        return self.db.get(ClientModel, client_id)

    def list(self, company_id: Optional[str] = None) -> List[ClientModel]:
        query = self.db.query(ClientModel)
        if company_id is not None:
            query = query.filter(ClientModel.id == company_id)
        return query.order_by(ClientModel.name).all()
