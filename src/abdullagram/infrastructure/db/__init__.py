"""Database package with engine, models and the snapshot repository."""

from abdullagram.infrastructure.db.engine import (
    AsyncSessionFactory,
    get_async_engine,
    get_session_factory,
    get_session_maker,
    init_models,
)
from abdullagram.infrastructure.db.models import Base, StoredSnapshot
from abdullagram.infrastructure.db.repositories import SqlAlchemySnapshotRepository

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "StoredSnapshot",
    "SqlAlchemySnapshotRepository",
    "get_async_engine",
    "get_session_factory",
    "get_session_maker",
    "init_models",
]
