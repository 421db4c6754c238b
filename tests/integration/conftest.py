"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session.

They need a migrated PostgreSQL database and are skipped unless
WT_INTEGRATION=1 is set:

    alembic upgrade head && WT_INTEGRATION=1 pytest tests/integration
"""

import os
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.main import app

_HERE = Path(__file__).parent


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("WT_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set WT_INTEGRATION=1 to run against PostgreSQL")
    for item in items:
        if _HERE in Path(str(item.fspath)).parents:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _unique_user(prefix: str) -> dict[str, str]:
    uid = uuid.uuid4().hex[:8]
    return {
        "username": f"{prefix}_{uid}",
        "email": f"{prefix}_{uid}@example.com",
        "password": "TestPass123",
    }


async def _register_and_login(client: AsyncClient, role: str) -> dict[str, str]:
    user = _unique_user(role)
    await client.post(
        "/api/v1/auth/register",
        json={**user, "role": role, "creator_code": settings.CREATOR_SIGNUP_CODE},
    )
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": user["username"], "password": user["password"]},
    )
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


@pytest.fixture
def new_account(client: AsyncClient) -> Callable[..., Awaitable[dict[str, str]]]:
    """Register a fresh account; awaiting the result yields its Authorization headers."""

    def factory(role: str = "user") -> Awaitable[dict[str, str]]:
        return _register_and_login(client, role)

    return factory
