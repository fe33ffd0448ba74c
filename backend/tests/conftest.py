"""
Test Configuration and Fixtures

Shared fixtures for all tests. Each test gets its own SQLite database file
(aiosqlite for the app, the stdlib driver for seeding).
"""

import os
import tempfile

# Must be set before quill.config is imported anywhere
os.environ["ENV"] = "testing"
os.environ["DEBUG"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["IDENTITY_PROVIDER"] = "password"
os.environ["EXTERNAL_IDENTITY_SECRET"] = "portal-test-secret-with-enough-length"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="quill-test-logs-")

from typing import AsyncGenerator, Callable, Iterator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session as SyncSession
from sqlalchemy.pool import NullPool

from quill.core.security import hash_password
from quill.db.models import Base, User
from quill.db.session import Database
from quill.main import create_app


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "quill_test.db")


@pytest.fixture
def sync_engine(db_path: str) -> Iterator[Engine]:
    """Synchronous engine on the test database, with all tables created."""
    engine = create_engine(f"sqlite:///{db_path}", poolclass=NullPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def database(sync_engine: Engine, db_path: str) -> Database:
    """Storage client the application under test runs against."""
    return Database(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)


@pytest.fixture
def client(database: Database) -> Iterator[TestClient]:
    """
    Fixture for FastAPI TestClient with test database.

    Used as a context manager so the application lifespan runs.
    """
    with TestClient(create_app(database=database)) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Async session on the test database for repository/service tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def seed_user(sync_engine: Engine) -> Callable[..., int]:
    """
    Factory inserting a user directly into the database.

    Returns:
        Callable returning the new user's id
    """

    def _seed(
        username: str = "seeded",
        email: str = "seeded@example.com",
        password: str = "testpassword",
        role: str = "user",
    ) -> int:
        with SyncSession(sync_engine) as session:
            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=role,
            )
            session.add(user)
            session.commit()
            return user.id

    return _seed


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """
    Fixture to create a test user with hashed password.

    Password for this user is "testpassword".
    """
    user = User(
        username="tester",
        email="test@example.com",
        password_hash=hash_password("testpassword"),
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    await db_session.commit()
    return user
