import contextlib

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.dependencies import get_local_store
from src.guests.repository.orm_models import Guest  # noqa: F401
from src.main import app
from src.models.base import BaseModel
from src.rsvp.local_store import InMemoryLocalStore
from src.rsvp.repository.orm_models import RSVP  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def async_session():
    """A session on a fresh in-memory database with every table created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(BaseModel.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def client_factory():
    """
    Build test clients with FastAPI dependency overrides.

    Usage:
        async with client_factory({get_thing: lambda: fake_thing}) as client:
            response = await client.get(...)
    """

    @contextlib.asynccontextmanager
    async def factory(overrides: dict | None = None):
        app.dependency_overrides.update(overrides or {})
        try:
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client
        finally:
            app.dependency_overrides.clear()

    return factory


@pytest.fixture
async def client(client_factory):
    """Create a test client."""
    local_store = InMemoryLocalStore()
    async with client_factory({get_local_store: lambda: local_store}) as ac:
        yield ac
