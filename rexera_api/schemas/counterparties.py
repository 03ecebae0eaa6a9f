"""Request schemas for counterparties."""

from typing import Any, Dict, Optional

from pydantic import Field, constr

from ..enums import CounterpartyType
from .common import EmailStr, RexeraModel

COUNTERPARTY_SORT_FIELDS = ("name", "type", "created_at")


class CounterpartyCreate(RexeraModel):
    name: constr(min_length=1, max_length=255)
    type: CounterpartyType
    email: Optional[EmailStr] = None
    phone: Optional[constr(min_length=1, max_length=50)] = None
    address: Optional[constr(min_length=1)] = None
    contact_info: Dict[str, Any] = Field(default_factory=dict)


class CounterpartyUpdate(RexeraModel):
    name: Optional[constr(min_length=1, max_length=255)] = None
    type: Optional[CounterpartyType] = None
    email: Optional[EmailStr] = None
    phone: Optional[constr(min_length=1, max_length=50)] = None
    address: Optional[constr(min_length=1)] = None
    contact_info: Optional[Dict[str, Any]] = None
