"""Repository protocol for skin metadata."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Skin


class SkinRepository(Protocol):
    """Row-level bookkeeping for skins. Never touches the filesystem."""

    async def lock_owner(self, owner_id: str) -> bool:
        ...

    async def create(self, *, owner_id: str, display_name: str, storage_key: str) -> Skin:
        ...

    async def get_by_id(self, skin_id: str, *, for_update: bool = False) -> Skin | None:
        ...

    async def list_by_owner(self, owner_id: str) -> Sequence[Skin]:
        ...

    async def count_by_owner(self, owner_id: str) -> int:
        ...

    async def update_display_name(self, skin_id: str, display_name: str) -> None:
        ...

    async def update_storage_key(self, skin_id: str, storage_key: str) -> None:
        ...

    async def delete_by_id(self, skin_id: str) -> None:
        ...
