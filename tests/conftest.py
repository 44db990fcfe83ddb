import itertools

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.dependencies import get_async_db
from app.core.auth import create_access_token, hash_password
from app.database import Base
from app.main import app
from app.models.users import Friendship, User

TEST_PASSWORD = "secret-password"
HASHED_TEST_PASSWORD = hash_password(TEST_PASSWORD)


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite shared by every session of a single test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client against the app with the test database plugged in"""
    async def override_get_async_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_get_async_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make_user(**kwargs) -> User:
        n = next(counter)
        user = User(
            email=f"user{n}@example.com",
            hashed_password=HASHED_TEST_PASSWORD,
            first_name=f"User{n}",
            last_name="Test",
            is_active=True,
            **kwargs,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def fetch_friendships(session_maker):
    """Reads friendships through a fresh session so nothing is served from a stale identity map"""
    async def _fetch() -> list[Friendship]:
        async with session_maker() as session:
            result = await session.scalars(select(Friendship).order_by(Friendship.id))
            return list(result.all())

    return _fetch


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict[str, str]:
        token = create_access_token({"sub": user.email, "id": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
