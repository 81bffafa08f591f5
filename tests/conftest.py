"""
Shared test fixtures for the Staff Admin Console tests.
"""
import os
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Point the app at a throwaway sqlite file before importing app modules
_TEST_DIR = Path(tempfile.mkdtemp(prefix="admin-console-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR / 'console_test.db'}"
os.environ["INIT_SCHEMA"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")


@pytest_asyncio.fixture
async def db():
    """Fresh tables for every test; pooled connections released afterwards."""
    from admin_console.database import engine
    from admin_console.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    from admin_console.database import SessionLocal

    async with SessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    """HTTP client bound to the ASGI app in-process."""
    from admin_console.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def registry():
    from admin_console.resources.registry import get_registry

    return get_registry()


@pytest.fixture
def handler_for(registry):
    """Build a handler for a resource by name."""
    from admin_console.resources.handler import ResourceHandler

    def _make(name: str):
        return ResourceHandler(registry.get(name), registry)

    return _make
