"""
Sprint Planning Backend — Test Configuration (conftest.py)
============================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_store: AsyncMock DocumentStore (no database)
    ├── mock_broadcaster: AsyncMock BroadcastService (no hub)
    ├── store_engine: async engine on a temporary SQLite file, tables created
    ├── sql_store: SqlDocumentStore bound to store_engine
    ├── hub: WebSocketHub with a test signing key
    ├── sample_payload: camelCase request body for the create* functions
    └── test_client: HTTPX AsyncClient with real SQL store + mock broadcaster
"""

import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
_test_dir = tempfile.mkdtemp(prefix="sprintplanning_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/app.db"
os.environ["HUB_ACCESS_KEY"] = "test-hub-access-key-0123456789abcdef"
os.environ["HUB_ENDPOINT"] = "http://testserver"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from sprintplanning.database import build_engine, build_session_factory, init_models  # noqa: E402
from sprintplanning.services.broadcast_base import BroadcastService  # noqa: E402
from sprintplanning.services.sql_store import SqlDocumentStore  # noqa: E402
from sprintplanning.services.store_base import DocumentStore  # noqa: E402
from sprintplanning.services.websocket_hub import WebSocketHub  # noqa: E402

TEST_HUB_KEY = os.environ["HUB_ACCESS_KEY"]


@pytest.fixture
def mock_store():
    """
    A DocumentStore whose async methods are AsyncMocks.

    Usage:
        mock_store.read.side_effect = ItemNotFoundError("id")
        mock_store.create.return_value = ItemResponse(entity, 1.0)
    """
    return AsyncMock(spec=DocumentStore)


@pytest.fixture
def mock_broadcaster():
    """A BroadcastService with an awaitable publish()."""
    broadcaster = AsyncMock(spec=BroadcastService)
    broadcaster.connection_count = 0
    return broadcaster


@pytest_asyncio.fixture
async def store_engine(tmp_path):
    """An engine on a fresh SQLite file with the document table created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def sql_store(store_engine):
    return SqlDocumentStore(build_session_factory(store_engine))


@pytest.fixture
def hub():
    return WebSocketHub(
        hub_name="sprintPlanningHub",
        endpoint="http://testserver",
        access_key=TEST_HUB_KEY,
        token_ttl_seconds=600,
    )


@pytest.fixture
def sample_payload():
    return {
        "employer": "Acme",
        "team": "Falcons",
        "sprintId": "2024-S3",
        "teamMember": "alice",
        "points": 5,
    }


@pytest_asyncio.fixture
async def test_client(sql_store, mock_broadcaster):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    The document store is real (temporary SQLite); the hub is a mock so
    tests can assert on publish() calls.
    """
    from sprintplanning.dependencies import get_broadcaster, get_store
    from sprintplanning.main import app

    app.dependency_overrides[get_store] = lambda: sql_store
    app.dependency_overrides[get_broadcaster] = lambda: mock_broadcaster
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
