"""Test configuration."""
import os
from collections.abc import AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# --- Default env for the app under test
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LEDGER_ENV", "test")
os.environ.setdefault("PROMETHEUS_ENABLED", "false")

from ledger.main import app  # noqa: E402
from ledger.db import get_db  # noqa: E402
from ledger.models import Base  # noqa: E402
from ledger.services.audit import AuditUserContext  # noqa: E402

CLINIC_ID = "clinic-a"
OTHER_CLINIC_ID = "clinic-b"


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Iterator[Session]:
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_db_dependency(db_session: Session) -> Iterator[None]:
    def _get_db() -> Iterator[Session]:
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clinic_id() -> str:
    return CLINIC_ID


@pytest.fixture
def audit_context() -> AuditUserContext:
    return AuditUserContext(clinic_id=CLINIC_ID, user_id="staff-1", user_name="Dr. Silva")

