"""
Pytest configuration and fixtures for Tasknest tests.
"""

import asyncio

import pytest
import pytest_asyncio
from fastapi import Request
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from tasknest.main import app
from tasknest.auth import AuthenticatedUser, get_current_user
from tasknest.config import Settings
from tasknest.database import get_session
from tasknest.dependencies import get_notifier
from tasknest.repository import TaskRepository
from tasknest.services import notifications
from tasknest.services.collaboration import CollaborationService
from tasknest.services.lifecycle import TaskService
from tasknest.services.queries import TaskQueries
from tasknest.services.users import UserDirectory


# In-memory database shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER = "alice"
EDITOR = "bob"
VIEWER = "carol"
STRANGER = "dave"


class RecordingNotifier:
    """Notifier that keeps every event it is handed."""

    def __init__(self):
        self.events = []

    async def notify(self, event):
        self.events.append(event)

    async def settle(self):
        """Wait for every dispatched notification to be delivered."""
        loop = asyncio.get_running_loop()
        pending = [t for t in notifications._pending if t.get_loop() is loop]
        if pending:
            await asyncio.gather(*pending)

    def of_kind(self, kind):
        return [e for e in self.events if e.kind == kind]


@pytest.fixture
def settings():
    return Settings(max_subtask_depth=4, notifications_enabled=False)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session with the standard users registered."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        users = UserDirectory(session)
        for uid in (OWNER, EDITOR, VIEWER, STRANGER):
            await users.register(uid, email=f"{uid}@example.com", name=uid.title())
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def repo(test_session):
    return TaskRepository(test_session)


@pytest.fixture
def task_service(test_session, repo, notifier, settings):
    return TaskService(repo, UserDirectory(test_session), notifier, settings)


@pytest.fixture
def collab_service(test_session, repo, notifier, settings):
    return CollaborationService(repo, UserDirectory(test_session), notifier, settings)


@pytest.fixture
def queries(repo):
    return TaskQueries(repo)


@pytest_asyncio.fixture(scope="function")
async def client(test_engine, notifier):
    """
    Create an async test client with test database.

    Requests authenticate as the user named in the ``X-Test-User`` header
    (default: alice) instead of verifying a Firebase token.
    """
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user(request: Request) -> AuthenticatedUser:
        uid = request.headers.get("X-Test-User", OWNER)
        return AuthenticatedUser(uid=uid, email=f"{uid}@example.com", name=uid.title())

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def as_user(uid: str) -> dict:
    return {"X-Test-User": uid}
