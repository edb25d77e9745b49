"""Shared fixtures for integration tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from mediagrab.config import MediagrabConfig


@pytest.fixture
def app(pipeline, download_root):
    """Application wired to the fake pipeline (lifespan doesn't run in tests)."""
    from mediagrab.server.app import create_app

    config = MediagrabConfig(_env_file=None, download_root=download_root)
    return create_app(pipeline=pipeline, config=config)


@pytest.fixture(scope="function")
async def client(app):
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
