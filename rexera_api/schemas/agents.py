"""Request schemas for agents."""

from typing import Any, Dict, Optional

from .common import RexeraModel


class AgentUpdate(RexeraModel):
    is_active: Optional[bool] = None
    configuration: Optional[Dict[str, Any]] = None
