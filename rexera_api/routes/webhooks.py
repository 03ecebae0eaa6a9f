"""
Inbound webhooks. n8n reports workflow and task outcomes here.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..db.base import get_db
from ..errors import APIErrors, format_validation_errors
from ..schemas.webhooks import N8nWebhookPayload
from ..services.n8n_webhook import N8nWebhookService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


@router.post("/n8n")
async def n8n_webhook(request: Request, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Apply an n8n event. Unauthenticated; n8n is trusted to call this."""
    try:
        raw = await request.json()
        payload = N8nWebhookPayload.model_validate(raw)
    except ValidationError as e:
        logger.warning("Invalid n8n webhook payload", error_count=e.error_count())
        raise APIErrors.bad_request(
            "Invalid webhook payload", format_validation_errors(e.errors())
        )
    except ValueError:
        # JSONDecodeError and UnicodeDecodeError
        raise APIErrors.bad_request("Invalid webhook payload")

    event_type = payload.eventType.value
    N8nWebhookService(db).process(event_type, payload.data.model_dump())
    return {"success": True, "message": f"Processed {event_type} event successfully"}
