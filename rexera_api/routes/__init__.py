"""API routers."""

from .agents import clients_router
from .agents import router as agents_router
from .audit_events import router as audit_events_router
from .communications import router as communications_router
from .counterparties import router as counterparties_router
from .cron import router as cron_router
from .documents import router as documents_router
from .documents import tags_router
from .health import router as health_router
from .hil_notes import router as hil_notes_router
from .notifications import router as notifications_router
from .task_executions import router as task_executions_router
from .webhooks import router as webhooks_router
from .workflows import router as workflows_router

ALL_ROUTERS = (
    health_router,
    workflows_router,
    task_executions_router,
    communications_router,
    documents_router,
    tags_router,
    counterparties_router,
    hil_notes_router,
    notifications_router,
    audit_events_router,
    agents_router,
    clients_router,
    webhooks_router,
    cron_router,
)

__all__ = ["ALL_ROUTERS"]
