"""
Shared fixtures: in-memory store double, a temporary SQLite database, and an
HTTP client wired to that database.
"""

from __future__ import annotations

import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.core.database import get_session, get_session_factory
from app.main import app
from app.services.task_store import SqlTaskStore
from app.services.tasks import TaskMutator, TaskQueryEngine

from .fakes import InMemoryTaskStore


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def other_owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def memory_store() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def queries(memory_store) -> TaskQueryEngine:
    return TaskQueryEngine(memory_store)


@pytest.fixture
def mutator(memory_store) -> TaskMutator:
    return TaskMutator(memory_store)


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SqlTaskStore:
    return SqlTaskStore(session_factory)


@pytest.fixture
async def client(session_factory):
    async def _session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def register(client: AsyncClient, email: str, name: str = "Test User") -> dict:
    response = await client.post(
        "/api/auth/register",
        json={"email": email, "password": "correct-horse-battery", "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
async def auth_headers(client) -> dict:
    body = await register(client, "owner@example.com")
    return {"Authorization": f"Bearer {body['accessToken']}"}


@pytest.fixture
async def other_auth_headers(client) -> dict:
    body = await register(client, "intruder@example.com")
    return {"Authorization": f"Bearer {body['accessToken']}"}
