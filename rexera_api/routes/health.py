"""
Health and version endpoints.
"""

import importlib.metadata
from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..db.base import get_db
from ..primitives import utc_now

logger = structlog.get_logger()

router = APIRouter(tags=["system"])


def app_version() -> str:
    return importlib.metadata.version("rexera-api")


@router.get("/api/health")
async def api_health() -> Dict[str, Any]:
    settings = get_settings()
    return {
        "success": True,
        "message": "Rexera API is running",
        "timestamp": utc_now().isoformat(),
        "environment": settings.environment,
        "version": app_version(),
    }


@router.get("/healthz")
def healthz(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Liveness plus a trivial database round trip."""
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", error=str(e))
        db_ok = False
    return {"ok": db_ok, "db": "ok" if db_ok else "unavailable"}


@router.get("/version")
def version() -> Dict[str, str]:
    """Return the version of the application."""
    return {"version": app_version()}
