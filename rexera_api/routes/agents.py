"""
Agent and client routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_company_filter, get_current_user, require_hil_user
from ..db.base import get_db
from ..errors import APIErrors
from ..schemas.agents import AgentUpdate
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, success
from ..services.agents import AgentService, ClientService

router = APIRouter(prefix="/api/agents", tags=["agents"])
clients_router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("")
async def list_agents(
    is_active: Optional[bool] = None,
    type: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    agents, total = AgentService(db).list(is_active=is_active, type=type, page=page, limit=limit)
    return paginated([agent.to_dict() for agent in agents], page, limit, total)


@router.get("/{agent_id}")
async def get_agent(
    agent_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    agent = AgentService(db).get(agent_id)
    if agent is None:
        raise APIErrors.not_found("Agent", agent_id)
    return success(agent.to_dict())


@router.patch("/{agent_id}")
async def update_agent(
    agent_id: str,
    body: AgentUpdate,
    user: AuthUser = Depends(require_hil_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = AgentService(db)
    agent = service.get(agent_id)
    if agent is None:
        raise APIErrors.not_found("Agent", agent_id)
    agent = service.update(agent, body.model_dump(exclude_unset=True))
    return success(agent.to_dict())


@clients_router.get("")
async def list_clients(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    clients = ClientService(db).list(get_company_filter(user))
    return success([client.to_dict() for client in clients])


@clients_router.get("/{client_id}")
async def get_client(
    client_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    company_id = get_company_filter(user)
    client = ClientService(db).get(client_id)
    if client is None or (company_id is not None and client.id != company_id):
        raise APIErrors.not_found("Client", client_id)
    return success(client.to_dict())
