from __future__ import annotations

import logging
from typing import Optional, Sequence

from abdullagram.domain.errors import NotFoundError
from abdullagram.domain.interfaces import SnapshotRepository
from abdullagram.domain.snapshot import StoreSnapshot
from abdullagram.domain.store import ChatStore

logger = logging.getLogger(__name__)


class SnapshotService:
    """Save the store to a repository and load it back."""

    def __init__(self, store: ChatStore, snapshot_repo: SnapshotRepository) -> None:
        self._store = store
        self._snapshot_repo = snapshot_repo

    async def save(self, label: str) -> StoreSnapshot:
        snapshot = self._store.snapshot()
        await self._snapshot_repo.save(label, snapshot)
        return snapshot

    async def load(self, label: str) -> StoreSnapshot:
        snapshot = await self._snapshot_repo.get(label)
        return self._restore(snapshot, label)

    async def load_latest(self) -> StoreSnapshot:
        snapshot = await self._snapshot_repo.get_latest()
        return self._restore(snapshot, None)

    async def list_labels(self) -> Sequence[str]:
        return await self._snapshot_repo.list_labels()

    def _restore(self, snapshot: Optional[StoreSnapshot], label: Optional[str]) -> StoreSnapshot:
        if snapshot is None:
            raise NotFoundError(f"Snapshot {label!r} not found" if label else "No snapshot saved yet")
        self._store.restore(snapshot)
        logger.info("Loaded snapshot %s", label or "latest")
        return snapshot
