"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PostgreSQL + Redis running, `alembic upgrade head` applied and
FAUCET_ENABLED=True in .env (funds come from the simulated faucet).
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.ds_gateway.auth.jwt_handler import create_access_token
from src.main import app


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    if not settings.FAUCET_ENABLED:
        pytest.skip("integration flow needs FAUCET_ENABLED=True")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def new_account() -> Callable[[str], tuple[str, dict[str, str]]]:
    """Fresh account ids with their bearer header; keeps tests independent."""

    def _new(prefix: str) -> tuple[str, dict[str, str]]:
        account = f"0x{prefix}{uuid.uuid4().hex[:12]}"
        return account, {"Authorization": f"Bearer {create_access_token(account)}"}

    return _new


@pytest.fixture
def funded(client: AsyncClient) -> Callable[..., Awaitable[None]]:
    async def _funded(headers: dict[str, str], asset: str, amount: int, spender: str) -> None:
        resp = await client.post(
            "/api/v1/token/faucet", json={"asset": asset, "amount": amount}, headers=headers
        )
        assert resp.status_code == 200, resp.text
        resp = await client.post(
            "/api/v1/token/approve",
            json={"spender": spender, "asset": asset, "amount": amount},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text

    return _funded
