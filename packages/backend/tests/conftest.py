"""Test fixtures — a fresh in-memory SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own engine on sqlite+aiosqlite:///:memory:.
   StaticPool keeps the single connection alive, so every session in
   the test sees the same database.
2. Tables are created from the ORM metadata (no Alembic) and thrown
   away with the engine after the test.
3. The app's get_db dependency is overridden to hand out that session.

Auth is NOT mocked: admin_client/user_client send a real JWT for a user
row that exists in the test database, so require_admin and
get_current_user run for real.
"""

import os

# Must be set before constructivo.config is imported anywhere
os.environ.setdefault("CONSTRUCTIVO_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CONSTRUCTIVO_ENVIRONMENT", "test")

import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketState

from constructivo.auth.jwt import create_access_token
from constructivo.db.engine import get_db
from constructivo.db.models import Base, User
from constructivo.main import app

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a brand-new in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


def _http_client(headers: dict | None = None) -> AsyncClient:
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test", headers=headers or {})


@pytest_asyncio.fixture()
async def client(db_session):
    """Anonymous HTTP client with get_db pointed at the test database."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with _http_client() as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def admin_user(db_session) -> User:
    user = User(email="admin@example.com", name="Site Admin", is_admin=True)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture()
async def regular_user(db_session) -> User:
    user = User(email="visitor@example.com", name="Regular Visitor", is_admin=False)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture()
async def admin_client(client, admin_user):
    """Client authenticated as an admin via a Bearer token."""
    token = create_access_token(admin_user.id)
    async with _http_client({"Authorization": f"Bearer {token}"}) as ac:
        yield ac


@pytest_asyncio.fixture()
async def user_client(client, regular_user):
    """Client authenticated as a non-admin user."""
    token = create_access_token(regular_user.id)
    async with _http_client({"Authorization": f"Bearer {token}"}) as ac:
        yield ac


# ─── Realtime helpers ────────────────────────────────────


class FakeWebSocket:
    """Just enough of starlette's WebSocket for AdminConnection."""

    def __init__(self, connected: bool = True):
        state = WebSocketState.CONNECTED if connected else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.sent: list[str] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(data)

    def disconnect(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED


def outbox_frames(connection) -> list[dict]:
    """Pop every queued frame off a connection's outbox, decoded."""
    frames = []
    while not connection.outbox.empty():
        frames.append(json.loads(connection.outbox.get_nowait()))
    return frames


@pytest.fixture()
def registry():
    """The app's connection registry, emptied after the test."""
    reg = app.state.admin_connections
    before = set(reg._connections)
    yield reg
    for connection in set(reg._connections) - before:
        reg.unregister(connection)


@pytest.fixture()
def connect_tab(registry):
    """Register a fake browser tab on the app's registry.

    connect_tab(admin=True) registers it and sends the adminAuth handshake.
    """
    def _connect(admin: bool = True, connected: bool = True):
        connection = registry.register(FakeWebSocket(connected=connected))
        if admin:
            registry.handle_message(connection, '{"type": "adminAuth", "isAdmin": true}')
        return connection

    return _connect


@pytest.fixture()
def drain():
    return outbox_frames


@pytest.fixture()
def fake_socket():
    """FakeWebSocket factory for tests that build their own registry."""
    return FakeWebSocket
