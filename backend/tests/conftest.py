"""
Modern Blog API — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Unit tests (no database):
    ├── mock_db_session: Mock AsyncSession
    ├── temp_storage: Temporary directory for file operations
    └── sample_png_bytes: A real 1x1 PNG for upload tests

    API tests (SQLite file database per test):
    ├── database: Database on tmp_path with all tables created
    ├── app / test_client: create_app(database=...) behind an HTTPX AsyncClient
    └── author / other_user / admin: users inserted directly, with bearer headers
"""

import os
import tempfile
from typing import Dict, NamedTuple
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="blog_api_test_")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ.pop("ADMIN_USERNAME", None)
os.environ.pop("ADMIN_PASSWORD", None)

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from blog_api.database import Database
from blog_api.main import create_app
from blog_api.models.user import ROLE_ADMIN, ROLE_USER, User
from blog_api.security import create_access_token, hash_password

TEST_PASSWORD = "secret123"


class AuthContext(NamedTuple):
    user: User
    headers: Dict[str, str]


# ══════════════════════════════════════════════════════════════════════════
# Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_post(mock_db_session):
            result = MagicMock()
            result.scalar_one_or_none.return_value = None
            mock_db_session.execute = AsyncMock(return_value=result)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_png_bytes():
    """
    A complete 1x1 transparent PNG.

    libmagic identifies it as image/png from the signature and IHDR chunk.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
        b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05"
        b"\x18\xd8N"
        b"\x00\x00\x00\x00IEND\xaeB`\x82"
    )


# ══════════════════════════════════════════════════════════════════════════
# API Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database file with every table created."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'blog.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def app(database):
    return create_app(database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    ASGITransport does not run the lifespan; the database is injected
    through create_app instead.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def create_user(database: Database, username: str, role: str = ROLE_USER) -> AuthContext:
    """Insert a user directly and issue a token for it."""
    async with database.session_factory() as session:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(TEST_PASSWORD),
            role=role,
        )
        session.add(user)
        await session.commit()

    token = create_access_token(str(user.id), user.role)
    return AuthContext(user=user, headers={"Authorization": f"Bearer {token}"})


@pytest_asyncio.fixture
async def author(database):
    return await create_user(database, "alice")


@pytest_asyncio.fixture
async def other_user(database):
    return await create_user(database, "bob")


@pytest_asyncio.fixture
async def admin(database):
    return await create_user(database, "root_admin", role=ROLE_ADMIN)


@pytest.fixture
def post_payload():
    """A valid PostCreate body."""
    return {
        "title": "Getting started with FastAPI",
        "content": "FastAPI makes it easy to build typed HTTP APIs in Python.",
        "excerpt": "A short introduction",
        "tags": ["python", "web"],
    }
