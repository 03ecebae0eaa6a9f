"""Payload schema for n8n webhook callbacks."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..enums import N8nEventType


class N8nEventData(BaseModel):
    """Event body. Only ``metadata`` is typed; other keys pass through as sent."""

    model_config = ConfigDict(extra="allow")

    metadata: Optional[Dict[str, Any]] = None


class N8nWebhookPayload(BaseModel):
    """``{eventType, data}`` sent by the n8n orchestrator."""

    model_config = ConfigDict(populate_by_name=True)

    eventType: N8nEventType
    data: N8nEventData
