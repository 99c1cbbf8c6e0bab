"""
Pytest configuration and fixtures for Coinbook tests.

Provides an in-memory MongoDB (mongomock-motor, no real server needed),
an HTTPX client over the ASGI app with every route's ``get_database``
pointed at that mock, and ready-made staff / admin tokens.
"""

import os

# Set required env vars before any app imports
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
# Disable rate limiting in tests
os.environ["TESTING"] = "1"

from unittest.mock import patch

import pytest
import pytest_asyncio
from mongomock_motor import AsyncMongoMockClient

# Route modules that resolve the database through ``get_database``.
ROUTE_MODULES = [
    "coinbook.routes.admin",
    "coinbook.routes.auth",
    "coinbook.routes.facebook_leads",
    "coinbook.routes.game_entries",
    "coinbook.routes.games",
    "coinbook.routes.health",
    "coinbook.routes.logins",
    "coinbook.routes.payments",
    "coinbook.routes.salaries",
    "coinbook.routes.stats",
]


@pytest.fixture
def anyio_backend():
    """Specify anyio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def test_db():
    """In-memory MongoDB mock database for unit tests.

    The database is ephemeral -- it disappears after each test.
    """
    client = AsyncMongoMockClient()
    db = client["coinbook_test"]
    yield db
    client.close()


@pytest_asyncio.fixture
async def mock_db(test_db):
    """Patch every route module's ``get_database`` to return ``test_db``."""
    patchers = [patch(f"{module}.get_database", lambda: test_db) for module in ROUTE_MODULES]
    for patcher in patchers:
        patcher.start()
    yield test_db
    for patcher in patchers:
        patcher.stop()


@pytest_asyncio.fixture
async def client():
    """Async HTTP client for the FastAPI app (database not patched)."""
    from httpx import ASGITransport, AsyncClient
    from coinbook.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def test_client(mock_db):
    """Async HTTP client wired to the FastAPI app with the mocked db."""
    from httpx import ASGITransport, AsyncClient
    from coinbook.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def user_headers() -> dict[str, str]:
    """Authorization header for a regular staff member."""
    from coinbook.auth.jwt import create_access_token

    token = create_access_token(data={"sub": "staff-1", "username": "alice", "role": "user"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Authorization header for an admin."""
    from coinbook.auth.jwt import create_access_token

    token = create_access_token(data={"sub": "admin-1", "username": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}
