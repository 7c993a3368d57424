"""Engine and session handling for the ledger store."""
from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger.config import get_settings
from ledger.models.base import Base

IN_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})

engine: Engine | None = None
SessionLocal: sessionmaker[Session] | None = None


def build_engine(database_url: str) -> Engine:
    """Create an engine with the connection options the URL needs."""

    options: dict[str, object] = {"future": True, "echo": False}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if database_url in IN_MEMORY_URLS:
            # One shared connection, otherwise each checkout sees an empty database.
            options["poolclass"] = StaticPool
    else:
        options["pool_pre_ping"] = True
    return create_engine(database_url, **options)


def init_engine() -> Engine:
    """Bind the module engine and session factory to the configured URL once."""

    global engine, SessionLocal
    if engine is not None:
        return engine
    engine = build_engine(get_settings().database_url)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return engine


def get_engine() -> Engine:
    return engine if engine is not None else init_engine()


def get_sessionmaker() -> sessionmaker[Session]:
    init_engine()
    assert SessionLocal is not None
    return SessionLocal


def create_all() -> None:
    """Create the ledger tables directly; outside dev/test use Alembic."""

    Base.metadata.create_all(bind=get_engine())


def close_engine() -> None:
    global engine, SessionLocal
    if engine is None:
        return
    engine.dispose()
    engine, SessionLocal = None, None


@contextmanager
def session_scope() -> Iterator[Session]:
    """Yield a session outside of a request, closing it afterwards."""

    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""

    with session_scope() as session:
        yield session


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "build_engine",
    "create_all",
    "get_db",
    "get_engine",
    "get_sessionmaker",
    "init_engine",
    "close_engine",
    "session_scope",
]
