"""Shared pytest fixtures for forecast engine tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import get_settings
from app.main import app


@pytest.fixture
async def client():
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Drop cached settings so monkeypatched environment applies per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
