"""Pytest fixtures and configuration."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing the app
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-at-least-32-characters-long")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from forum_api.database import Base, get_db, session_scope, utc_now
from forum_api.main import app
from forum_api.models import Post, PostComment, PostTopic, SavedPost, Topic, User
from forum_api.utils.security import create_access_token, hash_password

SessionFactory = async_sessionmaker[AsyncSession]


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> SessionFactory:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory: SessionFactory) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints against the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Build an Authorization header carrying a fresh token for a user."""

    def _auth_headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}

    return _auth_headers


@pytest.fixture
def make_user(session_factory: SessionFactory) -> Callable[..., Awaitable[User]]:
    """Insert a user directly into the test database."""

    async def _make_user(username: str = "alice", password: str = "secret123") -> User:
        async with session_factory() as session:
            user = User(username=username, password_hash=hash_password(password))
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_post(session_factory: SessionFactory) -> Callable[..., Awaitable[Post]]:
    """Insert a post and its topics directly into the test database."""

    async def _make_post(
        author: User,
        title: str = "Hello",
        body: str = "First post",
        topics: Sequence[str] = ("Python",),
        created_at: datetime | None = None,
        id: int | None = None,
    ) -> Post:
        async with session_factory() as session:
            post = Post(
                title=title,
                body=body,
                user_id=author.id,
                created_at=created_at or utc_now(),
            )
            if id is not None:
                post.id = id
            session.add(post)
            await session.flush()

            for name in topics:
                topic = await session.scalar(select(Topic).where(Topic.name == name))
                if topic is None:
                    topic = Topic(name=name, color="blue")
                    session.add(topic)
                    await session.flush()
                session.add(PostTopic(post_id=post.id, topic_id=topic.id))

            await session.commit()
            return post

    return _make_post


@pytest.fixture
def make_comment(session_factory: SessionFactory) -> Callable[..., Awaitable[PostComment]]:
    """Insert a comment directly into the test database."""

    async def _make_comment(
        post: Post,
        author: User,
        body: str = "Nice",
        parent: PostComment | None = None,
        created_at: datetime | None = None,
    ) -> PostComment:
        async with session_factory() as session:
            comment = PostComment(
                post_id=post.id,
                user_id=author.id,
                parent_id=parent.id if parent else None,
                body=body,
                created_at=created_at or utc_now(),
            )
            session.add(comment)
            await session.commit()
            return comment

    return _make_comment


@pytest.fixture
def make_save(session_factory: SessionFactory) -> Callable[..., Awaitable[None]]:
    """Insert a saved post directly into the test database."""

    async def _make_save(user: User, post: Post) -> None:
        async with session_factory() as session:
            session.add(SavedPost(user_id=user.id, post_id=post.id))
            await session.commit()

    return _make_save
