from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import TypeAdapter
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from abdullagram.domain.interfaces import SnapshotRepository
from abdullagram.domain.snapshot import StoreSnapshot
from abdullagram.infrastructure.db.models import StoredSnapshot

logger = logging.getLogger(__name__)

_snapshot_adapter = TypeAdapter(StoreSnapshot)


def _map_snapshot(model: StoredSnapshot) -> StoreSnapshot:
    return _snapshot_adapter.validate_python(model.payload)


class SqlAlchemySnapshotRepository(SnapshotRepository):
    """Keeps store snapshots as JSON documents, one row per label."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_model(self, label: str) -> Optional[StoredSnapshot]:
        stmt: Select[tuple[StoredSnapshot]] = select(StoredSnapshot).where(StoredSnapshot.label == label)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def save(self, label: str, snapshot: StoreSnapshot) -> None:
        payload = _snapshot_adapter.dump_python(snapshot, mode="json")
        model = await self._get_model(label)
        if model:
            model.taken_at = snapshot.taken_at
            model.payload = payload
        else:
            model = StoredSnapshot(label=label, taken_at=snapshot.taken_at, payload=payload)
            self._session.add(model)

        await self._session.commit()
        logger.info("Saved snapshot %r (%d users, %d messages)", label, len(snapshot.users), len(snapshot.messages))

    async def get(self, label: str) -> Optional[StoreSnapshot]:
        model = await self._get_model(label)
        return _map_snapshot(model) if model else None

    async def get_latest(self) -> Optional[StoreSnapshot]:
        stmt: Select[tuple[StoredSnapshot]] = (
            select(StoredSnapshot).order_by(StoredSnapshot.taken_at.desc(), StoredSnapshot.id.desc()).limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _map_snapshot(model) if model else None

    async def list_labels(self) -> Sequence[str]:
        stmt = select(StoredSnapshot.label).order_by(StoredSnapshot.taken_at.asc(), StoredSnapshot.id.asc())
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def delete(self, label: str) -> bool:
        stmt = StoredSnapshot.__table__.delete().where(StoredSnapshot.label == label)
        result = await self._session.execute(stmt)
        await self._session.commit()
        return result.rowcount > 0
