"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any
from uuid import uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import Base, ProfileModel
from infrastructure.database.sqlalchemy_store import SQLAlchemyDataStore


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class ActingUser:
    """Mutable holder for the user the test client authenticates as."""

    def __init__(self, user: TokenUser) -> None:
        self.user = user


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test, with foreign keys enforced."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SQLAlchemyDataStore:
    return SQLAlchemyDataStore(session_factory)


@pytest.fixture
async def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Any:
    """Factory that stores a profile and returns the matching TokenUser."""

    async def _make(email: str | None = None, full_name: str | None = None) -> TokenUser:
        user = TokenUser(
            id=uuid4(),
            email=email or f"user-{uuid4().hex[:8]}@example.com",
            full_name=full_name,
        )
        async with session_factory() as session:
            session.add(
                ProfileModel(id=user.id, email=user.email, full_name=user.full_name)
            )
            await session.commit()
        return user

    return _make


@pytest.fixture
async def test_user(make_user: Any) -> TokenUser:
    """The default authenticated user, with a stored profile."""
    return await make_user(email="test@example.com", full_name="Test User")


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    """Create auth provider for testing."""
    return JWTAuthProvider(
        secret_key="test-secret-key",
        algorithm="HS256",
        expire_minutes=30,
    )


@pytest.fixture
def auth_token(auth_provider: JWTAuthProvider, test_user: TokenUser) -> str:
    """Create auth token for test user."""
    return str(auth_provider.create_token(test_user))


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def acting(test_user: TokenUser) -> ActingUser:
    """Switch ``acting.user`` to make requests as someone else."""
    return ActingUser(test_user)


@pytest.fixture
def app(
    store: SQLAlchemyDataStore,
    acting: ActingUser,
    auth_provider: JWTAuthProvider,
) -> FastAPI:
    """
    Application wired to the in-memory database.

    - Every service is built over the test data store
    - The current user is whoever ``acting.user`` holds
    - Optional auth still decodes real tokens with the test secret
    """
    from api.dependencies.auth import get_auth_provider, get_current_user
    from api.v1.dependencies import get_data_store
    from main import create_app

    app = create_app()

    async def override_get_user() -> TokenUser:
        return acting.user

    app.dependency_overrides[get_data_store] = lambda: store
    app.dependency_overrides[get_current_user] = override_get_user
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    return app


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client (no auth, no database)."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def authenticated_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async client for ``app``; requests run as ``acting.user``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
