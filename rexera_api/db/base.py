"""Engine, session and declarative base for the Rexera API."""

from typing import Generator, Optional

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings

logger = structlog.get_logger()


class Base(DeclarativeBase):
    pass


def normalize_database_url(raw_url: str) -> str:
    """Map Supabase/Heroku style URLs onto the psycopg driver.

    ``postgres://`` and async Postgres drivers both become
    ``postgresql+psycopg``; ``sqlite+aiosqlite`` becomes plain ``sqlite``.
    """
    if raw_url.startswith("postgres://"):
        raw_url = "postgresql://" + raw_url[len("postgres://"):]

    url = make_url(raw_url)
    backend = url.get_backend_name()
    if backend == "postgresql" and url.drivername != "postgresql+psycopg":
        url = url.set(drivername="postgresql+psycopg")
    elif backend == "sqlite" and url.drivername != "sqlite":
        url = url.set(drivername="sqlite")

    # str(url) masks the password
    return url.render_as_string(hide_password=False)


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    settings = get_settings()
    return create_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Return the process-wide engine, building it on first use."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(normalize_database_url(get_settings().database_url))
    return _engine


def get_session_local() -> sessionmaker:
    return sessionmaker(autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency."""
    db = get_session_local()()
    try:
        yield db
    finally:
        db.close()


async def init_database() -> None:
    """Create any missing tables for the registered models."""
    from . import audit_models, models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("database_ready", tables=len(Base.metadata.tables))
