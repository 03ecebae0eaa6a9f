"""
Counterparty routes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import AuthUser, get_current_user
from ..db.base import get_db
from ..db.models import CounterpartyModel
from ..enums import CounterpartyType
from ..errors import APIErrors
from ..primitives import enum_value, is_uuid
from ..schemas.common import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, paginated, success
from ..schemas.counterparties import (
    COUNTERPARTY_SORT_FIELDS,
    CounterpartyCreate,
    CounterpartyUpdate,
)
from ..services.counterparties import MAX_SEARCH_RESULTS, CounterpartyService
from ..services.exceptions import CounterpartyInUseError

router = APIRouter(prefix="/api/counterparties", tags=["counterparties"])

COUNTERPARTY_TYPE_LABELS = {
    CounterpartyType.HOA.value: "HOA",
    CounterpartyType.LENDER.value: "Lender",
    CounterpartyType.MUNICIPALITY.value: "Municipality",
    CounterpartyType.UTILITY.value: "Utility",
    CounterpartyType.TAX_AUTHORITY.value: "Tax Authority",
}


def _load(service: CounterpartyService, counterparty_id: str) -> CounterpartyModel:
    if not is_uuid(counterparty_id):
        raise APIErrors.bad_request("Invalid UUID format")
    counterparty = service.get(counterparty_id.lower())
    if counterparty is None:
        raise APIErrors.not_found("Counterparty", counterparty_id)
    return counterparty


@router.get("")
async def list_counterparties(
    type: Optional[CounterpartyType] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    sort: str = "name",
    order: str = Query("asc", pattern="^(asc|desc)$"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if sort not in COUNTERPARTY_SORT_FIELDS:
        raise APIErrors.bad_request(
            f"Invalid sort value: {sort}", {"allowed": list(COUNTERPARTY_SORT_FIELDS)}
        )
    items, total = CounterpartyService(db).list(
        type=enum_value(type), search=search, page=page, limit=limit, sort=sort, order=order
    )
    return paginated([item.to_dict() for item in items], page, limit, total)


@router.get("/search")
async def search_counterparties(
    q: str = Query(..., min_length=1),
    type: Optional[CounterpartyType] = None,
    limit: int = Query(10, ge=1, le=MAX_SEARCH_RESULTS),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    results = CounterpartyService(db).search(q, enum_value(type), limit)
    return success(
        [item.to_dict() for item in results],
        meta={"query": q, "type": enum_value(type), "total": len(results), "limit": limit},
    )


@router.get("/types")
async def list_counterparty_types(user: AuthUser = Depends(get_current_user)) -> Dict[str, Any]:
    return success(
        [{"value": value, "label": label} for value, label in COUNTERPARTY_TYPE_LABELS.items()]
    )


@router.get("/{counterparty_id}")
async def get_counterparty(
    counterparty_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return success(_load(CounterpartyService(db), counterparty_id).to_dict())


@router.post("", status_code=201)
async def create_counterparty(
    body: CounterpartyCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    counterparty = CounterpartyService(db).create(
        body.model_dump(), actor_id=user.id, actor_name=user.display_name
    )
    return success(counterparty.to_dict())


@router.patch("/{counterparty_id}")
async def update_counterparty(
    counterparty_id: str,
    body: CounterpartyUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CounterpartyService(db)
    counterparty = service.update(
        _load(service, counterparty_id), body.model_dump(exclude_unset=True)
    )
    return success(counterparty.to_dict())


@router.delete("/{counterparty_id}")
async def delete_counterparty(
    counterparty_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    service = CounterpartyService(db)
    counterparty = _load(service, counterparty_id)
    try:
        service.delete(counterparty, actor_id=user.id, actor_name=user.display_name)
    except CounterpartyInUseError as e:
        raise APIErrors.conflict(str(e))
    return success({"id": counterparty_id}, message="Counterparty deleted successfully")
