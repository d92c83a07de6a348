import os

# Settings are read once at import time, so configure before importing src.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_KEY"] = "test-secret-key"
os.environ["JWT_ALGORITHM"] = "HS256"

from typing import Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src import app
from src.db.main import build_engine, get_Session, register_models
from src.utils.auth import get_current_user
from src.auth.models import User, Role
from helpers import Seeder


@pytest_asyncio.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """A file-backed store, so concurrent sessions get their own connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def file_session_maker(file_engine):
    return sessionmaker(bind=file_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def session_maker(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def seed(session_maker):
    return Seeder(session_maker)


@pytest_asyncio.fixture
async def staff(seed):
    return await seed.user(full_name="Sara Staff", role=Role.STAFF)


@pytest.fixture
def act_as():
    """Swap the authenticated actor for the rest of the test."""
    def _act_as(user: User, role: Optional[str] = None):
        actor = {"user_id": str(user.user_id), "user_role": role or user.role.value}
        app.dependency_overrides[get_current_user] = lambda: actor
        return actor
    return _act_as


@pytest_asyncio.fixture
async def client(session_maker, staff, act_as):
    async def override_get_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_Session] = override_get_session
    act_as(staff)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
