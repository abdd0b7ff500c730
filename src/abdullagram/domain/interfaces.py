from __future__ import annotations

from typing import Optional, Protocol, Sequence

from abdullagram.domain.snapshot import StoreSnapshot


class SnapshotRepository(Protocol):
    async def save(self, label: str, snapshot: StoreSnapshot) -> None:
        ...

    async def get(self, label: str) -> Optional[StoreSnapshot]:
        ...

    async def get_latest(self) -> Optional[StoreSnapshot]:
        ...

    async def list_labels(self) -> Sequence[str]:
        ...

    async def delete(self, label: str) -> bool:
        ...
