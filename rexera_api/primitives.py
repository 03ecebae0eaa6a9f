"""
Shared primitives: identifiers, timestamps and workflow display ids.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from ulid import ULID

from .enums import CounterpartyType, WorkflowType

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

# Display prefixes for formatted workflow ids
WORKFLOW_ID_PREFIXES: Dict[str, str] = {
    WorkflowType.PAYOFF_REQUEST.value: "PAY",
    WorkflowType.HOA_ACQUISITION.value: "HOA",
    WorkflowType.MUNI_LIEN_SEARCH.value: "MUNI",
}

ALLOWED_COUNTERPARTY_TYPES: Dict[str, FrozenSet[str]] = {
    WorkflowType.PAYOFF_REQUEST.value: frozenset({CounterpartyType.LENDER.value}),
    WorkflowType.HOA_ACQUISITION.value: frozenset({CounterpartyType.HOA.value}),
    WorkflowType.MUNI_LIEN_SEARCH.value: frozenset(
        {
            CounterpartyType.MUNICIPALITY.value,
            CounterpartyType.UTILITY.value,
            CounterpartyType.TAX_AUTHORITY.value,
        }
    ),
}


def generate_uuid() -> str:
    """Generate a UUID4 string primary key."""
    return str(uuid.uuid4())


def generate_ulid() -> str:
    """Generate a ULID. ULIDs are lexicographically sortable by creation time."""
    return str(ULID())


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


def is_uuid(value: str) -> bool:
    return bool(value) and bool(UUID_PATTERN.match(value))


def format_workflow_id(workflow_uuid: str) -> str:
    """Format a UUID for display: last 8 hex chars as ``XXXX-XXXX``.

    >>> format_workflow_id("58948339-cf90-42f8-b75f-a264fef17152")
    'FEF1-7152'
    """
    if not workflow_uuid or not isinstance(workflow_uuid, str):
        return "UNKNOWN"
    short_id = workflow_uuid.replace("-", "")[-8:].upper()
    return f"{short_id[:4]}-{short_id[4:]}"


def format_workflow_id_with_type(workflow_uuid: str, workflow_type: str) -> str:
    """Prefix the display id with the workflow type, e.g. ``PAY-FEF1-7152``."""
    prefix = WORKFLOW_ID_PREFIXES.get(workflow_type, "WF")
    return f"{prefix}-{format_workflow_id(workflow_uuid)}"


def is_counterparty_allowed_for_workflow(
    counterparty_type: str, workflow_type: str
) -> bool:
    return counterparty_type in ALLOWED_COUNTERPARTY_TYPES.get(workflow_type, frozenset())


def enum_value(value):
    """Unwrap an Enum member to its value; other values pass through."""
    return getattr(value, "value", value)
