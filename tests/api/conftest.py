"""Test fixtures for API integration tests."""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pokerboard.models import Base, LoginSession, User
from pokerboard.services.email import EmailContent, EmailError, EmailService, get_email_service
from pokerboard.utils.db import get_db
from pokerboard.utils.security import (
    create_token_pair,
    generate_session_id,
    hash_password,
    hash_token,
)

TEST_PASSWORD = "TestPass123"


class RecordingEmailService(EmailService):
    """Email sender that keeps messages in memory instead of sending them."""

    def __init__(self, fail: bool = False):
        super().__init__()
        self.fail = fail
        self.sent: list[tuple[str, EmailContent]] = []

    async def send(self, to: str, content: EmailContent) -> None:
        if self.fail:
            raise EmailError()
        self.sent.append((to, content))


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """A fresh SQLite database file per test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pokerboard.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database, configured like production."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for arranging data and checking results in tests."""
    async with session_factory() as session:
        yield session


# =============================================================================
# FastAPI App & Client Fixtures
# =============================================================================


@pytest.fixture
def mailer() -> RecordingEmailService:
    return RecordingEmailService()


@pytest_asyncio.fixture(scope="function")
async def test_app(session_factory, mailer):
    """Create a test FastAPI application."""
    from fastapi import FastAPI

    from pokerboard.api import api_router
    from pokerboard.utils.errors import register_exception_handlers
    from pokerboard.utils.json_utils import ORJSONResponse

    app = FastAPI(title="Test App", default_response_class=ORJSONResponse)

    # One session per request, committed afterwards like production get_db()
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer

    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api/v1")

    yield app


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# User & Auth Fixtures
# =============================================================================


async def create_user(
    db: AsyncSession,
    name: str,
    email: str,
    is_admin: bool = False,
    password: str = TEST_PASSWORD,
) -> User:
    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    return user


async def login_headers(db: AsyncSession, user: User) -> dict[str, str]:
    """Bearer headers backed by a real login session row."""
    session_id = generate_session_id()
    tokens = create_token_pair(user.id, session_id)
    db.add(
        LoginSession(
            id=session_id,
            user_id=user.id,
            refresh_token_hash=hash_token(tokens["refresh_token"]),
            expires_at=datetime(2099, 1, 1, tzinfo=timezone.utc),
        )
    )
    await db.commit()
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture(scope="function")
async def test_user(test_db: AsyncSession) -> User:
    """The host of most games in the tests."""
    return await create_user(test_db, "Ali", "ali@example.com")


@pytest_asyncio.fixture(scope="function")
async def test_user2(test_db: AsyncSession) -> User:
    return await create_user(test_db, "Veli", "veli@example.com")


@pytest_asyncio.fixture(scope="function")
async def test_user3(test_db: AsyncSession) -> User:
    return await create_user(test_db, "Ayşe", "ayse@example.com")


@pytest_asyncio.fixture(scope="function")
async def admin_user(test_db: AsyncSession) -> User:
    return await create_user(test_db, "Admin", "admin@example.com", is_admin=True)


@pytest_asyncio.fixture(scope="function")
async def auth_headers(test_db: AsyncSession, test_user: User) -> dict[str, str]:
    return await login_headers(test_db, test_user)


@pytest_asyncio.fixture(scope="function")
async def auth_headers2(test_db: AsyncSession, test_user2: User) -> dict[str, str]:
    return await login_headers(test_db, test_user2)


@pytest_asyncio.fixture(scope="function")
async def admin_headers(test_db: AsyncSession, admin_user: User) -> dict[str, str]:
    return await login_headers(test_db, admin_user)


# =============================================================================
# Game Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def game_session(
    test_client: AsyncClient,
    auth_headers: dict[str, str],
    test_user: User,
    test_user2: User,
    test_user3: User,
) -> dict:
    """An ongoing game hosted by test_user with all three users seated at 1000."""
    response = await test_client.post(
        "/api/v1/sessions",
        json={
            "date": "2026-10-16T20:00:00Z",
            "location": "Kadıköy",
            "buyIn": 1000,
            "players": [
                {"userId": test_user.id, "buyIn": 1000},
                {"userId": test_user2.id, "buyIn": 1000},
                {"userId": test_user3.id, "buyIn": 1000},
            ],
        },
        headers=auth_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def player_id_for(game: dict, user: User) -> str:
    """PlayerSession id of a user in a session response."""
    return next(p["id"] for p in game["participants"] if p["userId"] == user.id)
