"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PostgreSQL + Redis running, `alembic upgrade head` applied.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client - keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def auth_headers(client: AsyncClient) -> dict[str, str]:
    """Registers a fresh trader and returns its Bearer header."""
    uid = uuid.uuid4().hex[:8]
    creds = {"email": f"trader_{uid}@example.com", "password": "TestPass123"}
    await client.post("/api/v1/auth/register", json={**creds, "name": f"trader {uid}"})
    login_resp = await client.post("/api/v1/auth/login", json=creds)
    token = login_resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}
