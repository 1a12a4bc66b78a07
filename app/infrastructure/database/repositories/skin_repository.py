"""SQLAlchemy implementation of the skin metadata repository."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Account as AccountModel, Skin as SkinModel
from app.modules.skins.exceptions import SkinNotFoundError, SkinStorageKeyConflictError
from app.modules.skins.models import Skin
from app.modules.skins.repository import SkinRepository


class SqlSkinRepository(SkinRepository):
    """Skin repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lock_owner(self, owner_id: str) -> bool:
        # FOR UPDATE is dropped by the SQLite compiler; there BEGIN IMMEDIATE
        # already holds the write lock for the whole transaction.
        stmt = select(AccountModel.id).where(AccountModel.id == owner_id).with_for_update()
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create(self, *, owner_id: str, display_name: str, storage_key: str) -> Skin:
        model = SkinModel(
            owner_id=owner_id,
            display_name=display_name,
            storage_key=storage_key,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise SkinStorageKeyConflictError(f"存储键冲突: {storage_key}") from exc
        await self._session.refresh(model)
        return self._to_domain(model)

    async def get_by_id(self, skin_id: str, *, for_update: bool = False) -> Skin | None:
        stmt = (
            select(SkinModel)
            .where(SkinModel.id == skin_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def list_by_owner(self, owner_id: str) -> Sequence[Skin]:
        stmt = (
            select(SkinModel)
            .where(SkinModel.owner_id == owner_id)
            .order_by(SkinModel.created_at.asc(), SkinModel.id.asc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def count_by_owner(self, owner_id: str) -> int:
        stmt = select(func.count()).select_from(SkinModel).where(SkinModel.owner_id == owner_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def update_display_name(self, skin_id: str, display_name: str) -> None:
        stmt = (
            update(SkinModel)
            .where(SkinModel.id == skin_id)
            .values(display_name=display_name)
        )
        await self._execute_single_row(stmt, skin_id)

    async def update_storage_key(self, skin_id: str, storage_key: str) -> None:
        stmt = (
            update(SkinModel)
            .where(SkinModel.id == skin_id)
            .values(storage_key=storage_key)
        )
        try:
            await self._execute_single_row(stmt, skin_id)
        except IntegrityError as exc:
            raise SkinStorageKeyConflictError(f"存储键冲突: {storage_key}") from exc

    async def delete_by_id(self, skin_id: str) -> None:
        stmt = delete(SkinModel).where(SkinModel.id == skin_id)
        await self._execute_single_row(stmt, skin_id)

    async def _execute_single_row(self, stmt, skin_id: str) -> None:
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise SkinNotFoundError(skin_id)

    @staticmethod
    def _to_domain(model: SkinModel) -> Skin:
        return Skin(
            id=str(model.id),
            owner_id=model.owner_id,
            display_name=model.display_name,
            storage_key=model.storage_key,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
