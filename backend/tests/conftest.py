"""
CircuitMap Backend — Test Configuration (conftest.py)
======================================================

Fixture Hierarchy (all function-scoped, fresh per test):
    ├── engine:          in-memory aiosqlite engine, schema created
    ├── session_factory: async_sessionmaker bound to that engine
    ├── db_session:      one AsyncSession, used directly by service tests
    ├── panel:           a persisted Panel on db_session
    ├── make_breaker:    builds transient Breaker objects for pure tests
    └── test_client:     HTTPX AsyncClient with get_db_session overridden

StaticPool keeps a single connection so every session (and every HTTP
request) sees the same in-memory database.
"""

import os

# Override settings BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["AUTO_MIGRATE_TANDEMS_ON_IMPORT"] = "true"

from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, enable_sqlite_savepoints, get_db_session
from app.models.breaker import Breaker
from app.models.device import Device  # noqa: F401
from app.models.panel import Panel


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def panel(db_session):
    panel = Panel(name="Main Panel", brand="square_d", main_amperage=200, total_slots=40)
    db_session.add(panel)
    await db_session.flush()
    return panel


@pytest.fixture
def make_breaker():
    """
    Build a transient Breaker (never added to a session).

    Usage:
        breakers = [make_breaker("7"), make_breaker("1-3")]
        check_conflict(breakers, "3")
    """
    panel_id = uuid4()

    def _make(position, label="Circuit", **overrides):
        fields = {
            "id": uuid4(),
            "panel_id": panel_id,
            "position": position,
            "label": label,
            "amperage": 20,
            "poles": 1,
            "circuit_type": "general",
            "protection_type": "standard",
            "is_on": True,
            "notes": None,
            "sort_order": None,
        }
        fields.update(overrides)
        return Breaker(**fields)

    return _make


@pytest_asyncio.fixture
async def add_breakers(db_session, panel):
    """Persist breakers at the given positions on the `panel` fixture."""

    async def _add(*positions, **overrides):
        created = []
        for position in positions:
            fields = {
                "panel_id": panel.id,
                "position": position,
                "label": f"Circuit {position}",
                "amperage": 20,
            }
            fields.update(overrides)
            breaker = Breaker(**fields)
            db_session.add(breaker)
            created.append(breaker)
        await db_session.flush()
        return created

    return _add


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app instance.

    Each request gets its own session from the test engine and commits on
    success, like the production dependency.
    """
    from app.main import create_app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
