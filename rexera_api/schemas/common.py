"""Shared schema building blocks: id/email types, pagination and envelopes."""

import math
from typing import Any, Dict, Optional, Set

from pydantic import BaseModel, ConfigDict, constr

UUIDStr = constr(
    pattern=r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
EmailStr = constr(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
UrlStr = constr(pattern=r"^https?://\S+$", max_length=2000)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class RexeraModel(BaseModel):
    """Base for request bodies. Enum fields are stored as their plain values."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)


def build_pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    """Pagination block for list responses."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def parse_include(include: Optional[str]) -> Set[str]:
    """Split an ``include=a,b`` query value into a set of names."""
    if not include:
        return set()
    return {part.strip() for part in include.split(",") if part.strip()}


def success(data: Any, **extra: Any) -> Dict[str, Any]:
    """Standard success envelope."""
    body: Dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return body


def paginated(data: Any, page: int, limit: int, total: int) -> Dict[str, Any]:
    return success(data, pagination=build_pagination(page, limit, total))
