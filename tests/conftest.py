"""Test configuration and fixtures."""

import os

# Set environment variables before importing application code
os.environ["SKIP_AUTH"] = "true"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["N8N_BASE_URL"] = ""
os.environ["N8N_API_KEY"] = ""
os.environ.pop("CRON_SECRET", None)

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rexera_api.api import app
from rexera_api.auth import DEV_USER, AuthUser, get_current_user
from rexera_api.db import audit_models, models  # noqa: F401
from rexera_api.db.base import Base, get_db
from rexera_api.db.models import (
    ClientModel,
    CounterpartyModel,
    TaskExecutionModel,
    UserProfileModel,
    WorkflowModel,
)

test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override the get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    session = TestSessionLocal()
    yield session
    session.close()


@pytest.fixture
def company(db_session: Session) -> ClientModel:
    company = ClientModel(name="First Title Co.", domain="firsttitle.example.com")
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def other_company(db_session: Session) -> ClientModel:
    company = ClientModel(name="Coastal Escrow", domain="coastal.example.com")
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company


@pytest.fixture
def hil_user(db_session: Session) -> UserProfileModel:
    """Profile row for the development user that SKIP_AUTH resolves to."""
    profile = UserProfileModel(
        id=DEV_USER.id,
        user_type=DEV_USER.user_type,
        email=DEV_USER.email,
        full_name="Rexera Admin",
        role=DEV_USER.role,
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def second_hil_user(db_session: Session) -> UserProfileModel:
    profile = UserProfileModel(
        id="7d2f6c3e-1b7a-4a51-9c5e-2f0b8d9e4a11",
        user_type="hil_user",
        email="operator@rexera.com",
        full_name="HIL Operator",
        role="HIL",
    )
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


def make_workflow(
    db: Session,
    company: ClientModel,
    workflow_type: str = "PAYOFF_REQUEST",
    **overrides,
) -> WorkflowModel:
    values = {
        "workflow_type": workflow_type,
        "client_id": company.id,
        "title": "Payoff for 123 Main St",
        "status": "PENDING",
        "priority": "NORMAL",
        "metadata_": {},
    }
    values.update(overrides)
    workflow = WorkflowModel(**values)
    db.add(workflow)
    db.commit()
    db.refresh(workflow)
    return workflow


def make_task(db: Session, workflow: WorkflowModel, **overrides) -> TaskExecutionModel:
    values = {
        "workflow_id": workflow.id,
        "title": "Identify lender contact",
        "sequence_order": 1,
        "task_type": "identify_lender_contact",
        "status": "PENDING",
        "executor_type": "AI",
        "priority": "NORMAL",
        "input_data": {},
        "output_data": {},
    }
    values.update(overrides)
    task = TaskExecutionModel(**values)
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def make_counterparty(db: Session, type: str = "lender", **overrides) -> CounterpartyModel:
    values = {"name": "Northgate Mortgage", "type": type, "email": "payoffs@northgate.example.com"}
    values.update(overrides)
    counterparty = CounterpartyModel(**values)
    db.add(counterparty)
    db.commit()
    db.refresh(counterparty)
    return counterparty


@pytest.fixture
def workflow(db_session: Session, company: ClientModel) -> WorkflowModel:
    return make_workflow(db_session, company)


@pytest.fixture
def login_as() -> Generator:
    """Authenticate every request as the given user until the test ends."""

    def _login(user: AuthUser) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    yield _login
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def client_user(company: ClientModel) -> AuthUser:
    return AuthUser(
        id="3b9e2a70-5c4d-4e1f-8a6b-0c7d1e2f3a4b",
        email="closer@firsttitle.example.com",
        user_type="client_user",
        role="REQUESTOR",
        company_id=company.id,
    )
