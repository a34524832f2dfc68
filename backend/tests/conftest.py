"""Shared fixtures: an in-memory SQLite database and seeded records."""

import pytest_asyncio
from factories import make_user
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pulsecity.database import Base
from pulsecity.models import User


@pytest_asyncio.fixture
async def db_session():
    """AsyncSession bound to a fresh in-memory SQLite schema."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def analyst(db_session) -> User:
    """Persisted analyst with default thresholds."""
    user = make_user()
    db_session.add(user)
    await db_session.commit()
    return user
