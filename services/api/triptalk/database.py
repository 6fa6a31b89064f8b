"""
Async SQLAlchemy engine and session factory.

Production runs on TiDB through the aiomysql driver; any SQLAlchemy async
URL works (tests use in-memory SQLite via aiosqlite). Every store operation
commits its own unit of work, so a request session only has to roll back
whatever an exception left behind.
"""
import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from triptalk.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    if url.startswith("sqlite"):
        # One shared connection, or each checkout would see its own empty database
        return create_async_engine(
            url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(url, pool_pre_ping=True, pool_size=20, max_overflow=10)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.tidb_url)
AsyncSessionLocal = build_session_factory(engine)


class Base(DeclarativeBase):
    pass


async def create_tables(bind: AsyncEngine) -> None:
    # Register the mapped classes on Base.metadata
    from triptalk import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """Create all tables if they don't exist (idempotent)."""
    await create_tables(engine)
    logger.info("Database tables initialised")


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
