"""Async engine, session factory and the transaction helper used by the engine."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sidequest import models  # noqa: F401 - registers every table on Base.metadata
from sidequest.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.log_level.upper() == "DEBUG",
    pool_pre_ping=True,
)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """Commit everything done inside the block, or roll all of it back on any error."""
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise
