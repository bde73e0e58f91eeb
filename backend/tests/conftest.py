import os

import pytest
from fakeredis import FakeServer, aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from eventstore.infrastructure.event_repository import DbEventStoreRepository
from eventstore.infrastructure.sequence_sources import MockSequenceSource
from main import app
from notes.application.services import create_note
from notes.infrastructure.note_repository import DbNoteRepository
from shared.dependencies import get_db, get_redis, get_sequence_source
from shared.infrastructure.database import Base

import causality.infrastructure.models  # noqa: F401
import eventstore.infrastructure.models  # noqa: F401
import notes.infrastructure.models  # noqa: F401


@pytest.fixture
async def test_engine(tmp_path):
    url = os.environ.get("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    engine = create_async_engine(url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(test_engine):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def source():
    """Counter-like source: every call returns the previous number plus one."""
    return MockSequenceSource(clock=lambda: 0)


@pytest.fixture
def redis():
    return aioredis.FakeRedis(server=FakeServer())


@pytest.fixture(autouse=True)
async def override_dependencies(test_engine, source, redis):
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def _override():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override
    app.dependency_overrides[get_sequence_source] = lambda: source
    app.dependency_overrides[get_redis] = lambda: redis
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def note_repo(db):
    return DbNoteRepository(db)


@pytest.fixture
def event_repo(db):
    return DbEventStoreRepository(db)


@pytest.fixture
async def note(note_repo, source):
    return await create_note(note_repo, source, title="Scratchpad")
