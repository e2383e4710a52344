import os

# Set test environment
os.environ["APP_ID"] = "test-app"
os.environ["JWT_SECRET"] = "test-session-secret"
os.environ["OAUTH_SERVER_URL"] = "https://oauth.test"
os.environ["OWNER_OPEN_ID"] = "owner-open-id"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("DATABASE_URL", None)

from collections.abc import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
import respx
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from visitrack.database import Base, get_db
from visitrack.main import app
from visitrack.models import User, UserRole
from visitrack.utils.session_token import create_session_token

from tests.helpers import cookie_header

OAUTH_BASE_URL = "https://oauth.test"
OWNER_OPEN_ID = "owner-open-id"

# In-memory SQLite keeps the suite self-contained; override for PostgreSQL runs
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async engine for each test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def client_without_db() -> AsyncGenerator[AsyncClient, None]:
    """Test client for a deployment with no database configured."""

    async def override_get_db():
        yield None

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def oauth_api():
    """Stub the OAuth server."""
    with respx.mock(base_url=OAUTH_BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a regular user with a unique open id."""
    user = User(
        open_id=f"test-user-{uuid4().hex[:12]}",
        name="Test User",
        email="test@example.com",
        login_method="google",
        role=UserRole.user,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = User(
        open_id=OWNER_OPEN_ID,
        name="Site Owner",
        email="owner@example.com",
        login_method="email",
        role=UserRole.admin,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    """Session cookie headers for the regular test user."""
    return cookie_header(create_session_token(test_user.open_id, name=test_user.name or ""))


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return cookie_header(create_session_token(admin_user.open_id, name=admin_user.name or ""))

