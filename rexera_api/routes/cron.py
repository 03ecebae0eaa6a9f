"""
Scheduled jobs triggered over HTTP by the platform's cron.
"""

import secrets
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.base import get_db
from ..errors import APIErrors
from ..services.sla_monitor import SlaMonitor

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(request: Request) -> None:
    """Require ``Bearer <CRON_SECRET>`` when a secret is configured."""
    secret = get_settings().cron_secret
    if not secret:
        return
    supplied = request.headers.get("authorization", "").encode()
    if not secrets.compare_digest(supplied, f"Bearer {secret}".encode()):
        raise APIErrors.unauthorized("Invalid cron secret")


@router.post("/sla-monitor", dependencies=[Depends(verify_cron_secret)])
async def run_sla_monitor(db: Session = Depends(get_db)) -> Dict[str, Any]:
    result = SlaMonitor(db).run()
    return {
        "success": True,
        "message": result.message,
        "breaches_found": result.breaches_found,
        "breaches_processed": result.breaches_processed,
    }
