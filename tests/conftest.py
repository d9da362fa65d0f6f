"""Pytest fixtures and configuration."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-at-least-32-characters-long")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from reddit_clone import models  # noqa: F401 - registers tables on Base.metadata
from reddit_clone.database import Base, configure_sqlite, get_db
from reddit_clone.main import app
from reddit_clone.models.post import Post
from reddit_clone.models.user import User
from reddit_clone.utils.security import create_access_token, hash_password

TEST_PASSWORD = "securepassword123"


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database with every table created."""
    test_engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    configure_sqlite(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database.

    Tests should keep sessions short-lived: the in-memory database is a
    single shared connection.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_client(
    client: AsyncClient, session_factory: async_sessionmaker[AsyncSession]
) -> AsyncGenerator[AsyncClient]:
    """HTTP client whose requests run against the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """Factory that stores a user and returns it detached."""

    async def _make_user(
        username: str = "testuser",
        email: str | None = None,
        password: str = TEST_PASSWORD,
        is_active: bool = True,
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                hashed_password=hash_password(password),
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_post(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Post]]:
    """Factory that stores a post and returns it detached."""

    async def _make_post(
        creator: User,
        title: str = "A post",
        text: str = "Some text",
        created_at: datetime | None = None,
        points: int = 0,
    ) -> Post:
        async with session_factory() as session:
            post = Post(title=title, text=text, creator_id=creator.id, points=points)
            if created_at is not None:
                post.created_at = created_at
            session.add(post)
            await session.commit()
            return post

    return _make_post


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header carrying a token for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token(data={"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
