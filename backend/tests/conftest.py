"""
Inkwell Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Overview:
    ├── reset_database: Empty posts table in a temporary SQLite file
    ├── db_session: AsyncSession bound to that database
    ├── test_client: HTTPX AsyncClient talking to the FastAPI app
    └── fake_source_factory: Builds in-memory ContentSource trees
"""

import os
import tempfile

# Override settings for testing BEFORE any inkwell imports
_TEST_DIR = tempfile.mkdtemp(prefix="inkwell_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["GH_TOKEN"] = ""
os.environ["API_BASE_URL"] = "http://test:5000"
os.environ["ENV_FILE_PATH"] = os.path.join(_TEST_DIR, ".env")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["GITHUB_RETRY_MIN_WAIT"] = "0"

from typing import Any, Dict, Iterable, List  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from inkwell.database import (  # noqa: E402
    Base,
    async_session_factory,
    create_tables_if_missing,
    engine,
)
from inkwell.exceptions import RemoteFetchError  # noqa: E402
from inkwell.models.post import Post  # noqa: E402,F401
from inkwell.services.content_base import ContentSource  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def reset_database():
    """Drops and re-creates the tables so every test starts empty."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await create_tables_if_missing()
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(reset_database):
    async with async_session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_client(reset_database):
    """
    HTTPX AsyncClient routed straight into the app through ASGITransport.

    The lifespan does not run, so no base URL is registered and the real
    GitHub client is never opened.
    """
    from inkwell.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ══════════════════════════════════════════════════════════════════════════
# Remote Content Fixtures
# ══════════════════════════════════════════════════════════════════════════

def file_item(path: str) -> Dict[str, Any]:
    """A GitHub-style contents item for a file."""
    return {"name": path.rsplit("/", 1)[-1], "path": path, "type": "file", "sha": "f" * 8}


def dir_item(path: str) -> Dict[str, Any]:
    """A GitHub-style contents item for a directory."""
    return {"name": path.rsplit("/", 1)[-1], "path": path, "type": "dir", "sha": "d" * 8}


class FakeContentSource(ContentSource):
    """
    In-memory repository: maps a path ("" for the root) to its listing.

    Records every params dict it was called with; paths in `failing` raise
    RemoteFetchError like a GitHub 404 would.
    """

    def __init__(self, tree: Dict[str, List[Dict[str, Any]]], failing: Iterable[str] = ()):
        self.tree = tree
        self.failing = set(failing)
        self.calls: List[Dict[str, Any]] = []

    async def list_contents(self, params):
        path = params.get("path") or ""
        self.calls.append(dict(params))
        if path in self.failing:
            raise RemoteFetchError(message=f"Not Found: {path}", status_code=404)
        return [dict(item) for item in self.tree.get(path, [])]

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def fake_source_factory():
    return FakeContentSource
