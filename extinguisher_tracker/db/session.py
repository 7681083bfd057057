"""SQLAlchemy engine and session helpers for the database backend."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import TypeDecorator

# ``Base`` is the parent class for every model defined in extinguisher_tracker/models.
Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamps, also on SQLite which drops the offset."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared across worker threads."""

    if not url.startswith("sqlite"):
        return create_engine(url)
    kwargs: dict[str, object] = {"connect_args": {"check_same_thread": False}}
    # An in-memory database lives only as long as its single connection.
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    # Importing the models registers them with the metadata.
    from ..models import extinguisher as _extinguisher  # noqa: F401
    from ..models import maintenance as _maintenance  # noqa: F401

    Base.metadata.create_all(bind=engine)
