"""Tests for the SQLAlchemy skin metadata repository."""

from __future__ import annotations

import pytest
from sqlalchemy import text

from app.infrastructure.database.repositories import SqlSkinRepository
from app.modules.skins import SkinNotFoundError, SkinStorageKeyConflictError


@pytest.mark.asyncio
async def test_create_get_and_count(session_factory, make_account):
    owner = await make_account()
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        skin = await repository.create(owner_id=owner.id, display_name="Red", storage_key="a" * 32)
        await session.commit()

        loaded = await repository.get_by_id(skin.id)
        assert loaded is not None
        assert loaded.owner_id == owner.id
        assert loaded.display_name == "Red"
        assert loaded.storage_key == "a" * 32
        assert loaded.created_at is not None
        assert await repository.count_by_owner(owner.id) == 1
        assert await repository.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_list_by_owner_is_in_creation_order_and_scoped(session_factory, make_account):
    owner = await make_account()
    other = await make_account()
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        for index in range(4):
            await repository.create(owner_id=owner.id, display_name=f"skin-{index}", storage_key=f"{index:032x}")
        await repository.create(owner_id=other.id, display_name="other", storage_key="f" * 32)
        await session.commit()

        skins = await repository.list_by_owner(owner.id)
        assert [skin.display_name for skin in skins] == ["skin-0", "skin-1", "skin-2", "skin-3"]
        assert await repository.count_by_owner(other.id) == 1


@pytest.mark.asyncio
async def test_duplicate_storage_key_is_rejected(session_factory, make_account):
    owner = await make_account()
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        await repository.create(owner_id=owner.id, display_name="one", storage_key="b" * 32)
        with pytest.raises(SkinStorageKeyConflictError):
            await repository.create(owner_id=owner.id, display_name="two", storage_key="b" * 32)
        await session.rollback()


@pytest.mark.asyncio
async def test_updates_and_delete(session_factory, make_account):
    owner = await make_account()
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        skin = await repository.create(owner_id=owner.id, display_name="old", storage_key="c" * 32)

        await repository.update_display_name(skin.id, "new")
        await repository.update_storage_key(skin.id, "d" * 32)
        await session.commit()

        loaded = await repository.get_by_id(skin.id)
        assert loaded.display_name == "new"
        assert loaded.storage_key == "d" * 32
        assert loaded.updated_at is not None

        await repository.delete_by_id(skin.id)
        await session.commit()
        assert await repository.get_by_id(skin.id) is None
        assert await repository.count_by_owner(owner.id) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("operation", ["rename", "rekey", "delete"])
async def test_mutations_on_missing_row_raise_not_found(session_factory, operation):
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        with pytest.raises(SkinNotFoundError):
            if operation == "rename":
                await repository.update_display_name("missing", "x")
            elif operation == "rekey":
                await repository.update_storage_key("missing", "e" * 32)
            else:
                await repository.delete_by_id("missing")


@pytest.mark.asyncio
async def test_lock_owner_reports_account_existence(session_factory, make_account):
    owner = await make_account()
    async with session_factory() as session:
        repository = SqlSkinRepository(session)
        async with session.begin():
            assert await repository.lock_owner(owner.id) is True
            assert await repository.lock_owner("no-such-account") is False


@pytest.mark.asyncio
async def test_sqlite_foreign_keys_are_enforced(session_factory):
    async with session_factory() as session:
        result = await session.execute(text("PRAGMA foreign_keys"))
        assert result.scalar_one() == 1
