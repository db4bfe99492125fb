"""Pytest configuration and fixtures for BorderHop backend tests"""
import os

# Keep the app off any real database while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import httpx
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.models.database import Base
from app.services.analytics import stats_tracker
from app.services.circle_client import CircleClient, get_circle_client
from app.services.transfer_store import (
    InMemoryTransferStore,
    SqlTransferStore,
    TransferStore,
    get_transfer_store,
)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
CIRCLE_TEST_URL = "https://circle.test/v1"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Session on a fresh in-memory SQLite database.

    StaticPool keeps the single connection alive so every query sees the
    tables created here.
    """
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest.fixture
def memory_store() -> InMemoryTransferStore:
    return InMemoryTransferStore()


@pytest.fixture(params=["memory", "database"])
def store(request, memory_store, db_session) -> TransferStore:
    """Each test using this runs once per storage backend"""
    if request.param == "memory":
        return memory_store
    return SqlTransferStore(db_session)


@pytest.fixture
def circle_handler() -> dict:
    """
    Canned Circle responses keyed by (method, path).

    Values are ``(status_code, json_body)``. Unknown routes return 404.
    """
    return {}


@pytest_asyncio.fixture
async def circle_client(circle_handler) -> AsyncGenerator[CircleClient, None]:
    """Circle client whose HTTP calls are answered by circle_handler"""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path.removeprefix("/v1")
        status_code, body = circle_handler.get(
            (request.method, path),
            (404, {"error": {"message": "Not found"}}),
        )
        return httpx.Response(status_code, json=body)

    client = CircleClient(
        api_key="test-api-key",
        base_url=CIRCLE_TEST_URL,
        transport=httpx.MockTransport(handler),
    )
    client.requests = requests
    await client.connect()
    yield client
    await client.disconnect()


@pytest_asyncio.fixture
async def offline_circle_client() -> AsyncGenerator[CircleClient, None]:
    """Circle client without an API key, so it never calls out"""
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"Unexpected Circle call: {request.method} {request.url}")

    client = CircleClient(api_key="", base_url=CIRCLE_TEST_URL, transport=httpx.MockTransport(handler))
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture
def make_client(store: TransferStore, offline_circle_client: CircleClient) -> Callable:
    """Build an API client bound to the test store and a Circle client"""

    def _make(circle: Optional[CircleClient] = None) -> AsyncClient:
        async def override_get_transfer_store():
            yield store
            if isinstance(store, SqlTransferStore):
                await store.db.commit()

        async def override_get_circle_client():
            return circle or offline_circle_client

        app.dependency_overrides[get_transfer_store] = override_get_transfer_store
        app.dependency_overrides[get_circle_client] = override_get_circle_client
        return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    yield _make
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client(make_client) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client"""
    async with make_client() as ac:
        yield ac


@pytest.fixture(autouse=True)
def reset_stats():
    stats_tracker.reset()
    yield
    stats_tracker.reset()


@pytest.fixture
def transfer_payload():
    """Valid transfer request body"""
    return {
        "amount": 250.0,
        "sourceChain": "ethereum",
        "destinationChain": "arbitrum",
        "recipientAddress": "0xAbC0000000000000000000000000000000000001",
        "senderAddress": "0xDeF0000000000000000000000000000000000002",
        "intent": "standard",
        "email": "sender@example.com",
        "note": "Rent for October",
    }


@pytest.fixture
def route_payload():
    return {
        "amount": 100,
        "sourceChain": "ethereum",
        "destinationChain": "arbitrum",
        "intent": "standard",
    }
