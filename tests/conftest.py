"""
Shared fixtures.

Store tests run against an in-memory async SQLite database; endpoint tests
drive the FastAPI app through httpx with the store session and Supabase
client dependencies overridden.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_store_db, get_supabase_client
from app.core.config import settings
from app.db.base_class import Base
from app.main import app
from app.models.post import Post
from app.services.post_store import DatabasePostStore


@pytest_asyncio.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def async_db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def author_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def other_author_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def author_store(async_db_session, author_id) -> DatabasePostStore:
    return DatabasePostStore(async_db_session, viewer_id=author_id)


@pytest.fixture
def anonymous_store(async_db_session) -> DatabasePostStore:
    return DatabasePostStore(async_db_session, viewer_id=None)


@pytest.fixture
def make_post(async_db_session):
    """Insert a post directly, bypassing the store's row policy."""
    base_time = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    async def _make_post(author_id, title="Post", content="Some *content*", published=True, created_at=None):
        counter["n"] += 1
        created = created_at or base_time + timedelta(minutes=counter["n"])
        post = Post(
            title=title,
            content=content,
            author_id=author_id,
            published=published,
            created_at=created,
            updated_at=created,
        )
        async_db_session.add(post)
        await async_db_session.commit()
        return post

    return _make_post


@pytest_asyncio.fixture
async def async_client(async_db_session, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the database store on the test session."""
    monkeypatch.setattr(settings, "STORE_BACKEND", "database")

    async def override_get_store_db():
        yield async_db_session

    async def override_get_supabase_client():
        return None

    app.dependency_overrides[get_store_db] = override_get_store_db
    app.dependency_overrides[get_supabase_client] = override_get_supabase_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
