"""Shared test fixtures."""

import os

# Settings() requires JWT_SECRET at import time
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production-0123456789")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
