from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from abdullagram.config import Settings
from abdullagram.infrastructure.db.models import Base

AsyncSessionFactory = async_sessionmaker[AsyncSession]


def get_async_engine(settings: Settings) -> AsyncEngine:
    """Create a new async SQLAlchemy engine."""
    return create_async_engine(settings.database_url, echo=settings.database_echo, future=True)


def get_session_factory(engine: AsyncEngine) -> AsyncSessionFactory:
    """Create an async session factory."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False, autocommit=False)


def get_session_maker(settings: Settings) -> AsyncSessionFactory:
    """Convenience factory to produce sessions based on settings."""
    engine = get_async_engine(settings)
    return get_session_factory(engine)


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables; there are no migrations for the snapshot table."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
