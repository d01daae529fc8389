"""Integration-test fixtures.

Pre-condition: a PostgreSQL reachable at DATABASE_URL, migrated with
`alembic upgrade head`, and RUN_INTEGRATION=1 in the environment.

All integration tests share one event loop so the module-level SQLAlchemy
async engine pool stays valid for the whole session.
"""

import os
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.crm_common.database import async_session_factory
from src.crm_gateway.auth.jwt_handler import create_access_token
from src.main import app


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("RUN_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set RUN_INTEGRATION=1 with a migrated database")
    for item in items:
        if "integration" in item.nodeid.split("/"):
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncIterator[AsyncClient]:  # type: ignore[override]
    """Session-scoped async HTTP client; keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def _auth_headers(user_id: str, name: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, name=name)}"}


ProfileFactory = Callable[..., Awaitable[tuple[dict[str, Any], dict[str, str]]]]


@pytest.fixture
def make_profile(client: AsyncClient) -> ProfileFactory:
    """Create a profile through first access, then force its role in SQL."""

    async def _make(role: str = "client", name: str | None = None) -> tuple[dict[str, Any], dict[str, str]]:
        user_id = f"it-{uuid.uuid4().hex[:12]}"
        headers = _auth_headers(user_id, name)
        resp = await client.get("/api/v1/profiles/me", headers=headers)
        profile = resp.json()["data"]
        if role != "client":
            async with async_session_factory() as db:
                await db.execute(
                    text("UPDATE user_profiles SET role = :role WHERE id = CAST(:id AS uuid)"),
                    {"role": role, "id": profile["id"]},
                )
                await db.commit()
            profile["role"] = role
        return profile, headers

    return _make
