import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sidequest.database import get_db
from sidequest.main import app
from sidequest.models.base import Base
from sidequest.services.badge_service import seed_derived_badges


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh SQLite file per test, schema created from the ORM metadata."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'sidequest.db'}",
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncSession:
    async with async_sessionmaker(db_engine, expire_on_commit=False)() as session:
        yield session


@pytest.fixture
async def derived_badges(db_session: AsyncSession) -> AsyncSession:
    """Session with the run-level badge definitions (pathfinder, speedrunner, ...) seeded."""
    await seed_derived_badges(db_session)
    return db_session


@pytest.fixture
async def client() -> AsyncClient:
    """Client against the real app wiring; only for endpoints that never touch the DB."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_client(db_session: AsyncSession) -> AsyncClient:
    """Client whose requests all share the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)
