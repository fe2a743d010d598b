"""Engine and session wiring for the bookings database.

Production points `POSTGRES_DSN` at Postgres. SQLite DSNs (local runs, tests)
get a single shared connection so an in-memory database survives across
sessions and threadpool workers.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from bookpay.common.config import settings


class Base(DeclarativeBase):
    """Declarative base; its metadata is what `SqlBookingStore` inserts into."""

    pass


def build_engine(dsn: str) -> Engine:
    if dsn.startswith("sqlite"):
        return create_engine(dsn, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(dsn, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    # Inserted rows are read back after commit to build the API response.
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)


def create_schema(bind: Engine) -> None:
    """Create the booking tables directly; Postgres deployments use alembic instead."""

    from bookpay.services.booking_api import models  # noqa: F401

    Base.metadata.create_all(bind)


engine = build_engine(settings.postgres_dsn)
SessionLocal = build_session_factory(engine)
