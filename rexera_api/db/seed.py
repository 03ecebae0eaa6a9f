"""
Demo data for local development.

Seeding is idempotent: rows are matched on a natural key (client domain,
agent name, counterparty name) and only missing rows are inserted.
"""

from typing import Dict, List

import structlog
from sqlalchemy.orm import Session

from ..auth import DEV_USER
from ..enums import CounterpartyType
from .models import AgentModel, ClientModel, CounterpartyModel, UserProfileModel

logger = structlog.get_logger()

DEMO_CLIENTS = [
    {"name": "First Title Co.", "domain": "firsttitle.example.com"},
    {"name": "Coastal Escrow", "domain": "coastalescrow.example.com"},
]

DEMO_AGENTS = [
    ("nina", "Research & data discovery: contact research and information validation",
     ["contact_research", "data_validation"]),
    ("mia", "Email communication: composition, sending and follow-up",
     ["email_composition", "follow_up"]),
    ("florian", "Phone outreach: calls, voicemail and call scheduling",
     ["phone_calling", "voicemail"]),
    ("rex", "Web portal navigation: portal login, forms and document retrieval",
     ["portal_login", "document_download"]),
    ("iris", "Document processing: OCR, extraction and classification",
     ["ocr", "data_extraction"]),
    ("ria", "Client communication: status updates and escalations",
     ["client_updates", "escalation"]),
    ("kosha", "Financial tracking: cost tracking and billing",
     ["cost_tracking", "billing"]),
    ("cassy", "Quality assurance: validation and accuracy checks",
     ["data_validation", "quality_scoring"]),
    ("max", "IVR navigation: phone menus and hold queues",
     ["ivr_navigation", "dtmf"]),
    ("corey", "HOA specialist: HOA documents, bylaws and financials",
     ["hoa_document_analysis", "bylaws_interpretation"]),
]

DEMO_COUNTERPARTIES = [
    {"name": "Sunset Ridge HOA", "type": CounterpartyType.HOA.value,
     "email": "board@sunsetridge.example.com"},
    {"name": "Northgate Mortgage", "type": CounterpartyType.LENDER.value,
     "email": "payoffs@northgate.example.com"},
    {"name": "City of Springfield", "type": CounterpartyType.MUNICIPALITY.value,
     "email": "liens@springfield.example.gov"},
    {"name": "Springfield Water & Power", "type": CounterpartyType.UTILITY.value},
    {"name": "County Tax Collector", "type": CounterpartyType.TAX_AUTHORITY.value},
]


def seed_demo_data(db: Session) -> Dict[str, int]:
    """Insert demo clients, the development HIL user, agents and counterparties.

    Returns the number of rows created per kind.
    """
    created = {"clients": 0, "users": 0, "agents": 0, "counterparties": 0}

    for data in DEMO_CLIENTS:
        if db.query(ClientModel).filter(ClientModel.domain == data["domain"]).first() is None:
            db.add(ClientModel(**data))
            created["clients"] += 1

    if db.get(UserProfileModel, DEV_USER.id) is None:
        db.add(
            UserProfileModel(
                id=DEV_USER.id,
                user_type=DEV_USER.user_type,
                email=DEV_USER.email,
                full_name="Rexera Admin",
                role=DEV_USER.role,
            )
        )
        created["users"] += 1

    existing_agents: List[str] = [name for (name,) in db.query(AgentModel.name).all()]
    for name, description, capabilities in DEMO_AGENTS:
        if name not in existing_agents:
            db.add(
                AgentModel(
                    name=name, type=name, description=description, capabilities=capabilities
                )
            )
            created["agents"] += 1

    for data in DEMO_COUNTERPARTIES:
        exists = (
            db.query(CounterpartyModel.id)
            .filter(CounterpartyModel.name == data["name"])
            .first()
        )
        if exists is None:
            db.add(CounterpartyModel(**data))
            created["counterparties"] += 1

    db.commit()
    logger.info("Demo data seeded", **created)
    return created
