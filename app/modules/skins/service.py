"""Skin service coordinating blob storage and metadata rows.

Write ordering is what keeps rows and files consistent:

* upload writes the blob first and the row second, so a failed upload can
  leave at most a blob that is deleted again, never a row without a file;
* delete removes the row first and the blob second, so a failure in between
  leaves an orphan file rather than a row pointing at nothing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.core.identity import IdentityContext
from app.infrastructure.storage import (
    BlobInvalidTypeError,
    BlobNotFoundError,
    BlobStoreError,
    FilesystemBlobStore,
    detect_content_type,
)

from .exceptions import (
    SkinError,
    SkinForbiddenError,
    SkinNotFoundError,
    SkinQuotaExceededError,
    SkinStorageError,
    SkinUnavailableError,
    SkinValidationError,
)
from .models import MAX_SKINS_PER_USER, Skin, SkinContent
from .repository import SkinRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _sql_repository(session: AsyncSession) -> SkinRepository:
    # 延迟导入仓储实现，避免循环依赖
    from app.infrastructure.database.repositories.skin_repository import SqlSkinRepository

    return SqlSkinRepository(session)


@dataclass(slots=True)
class SkinService:
    session_factory: async_sessionmaker[AsyncSession]
    blob_store: FilesystemBlobStore
    max_display_name_length: int = 64
    max_upload_bytes: int = 2 * 1024 * 1024
    request_timeout: Optional[float] = 10.0
    repository_factory: Callable[[AsyncSession], SkinRepository] = _sql_repository

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> "SkinService":
        settings = settings or get_settings()
        storage = settings.storage
        blob_store = FilesystemBlobStore(storage.skin_dir, storage.allowed_content_types)
        return cls(
            session_factory=session_factory,
            blob_store=blob_store,
            max_display_name_length=storage.max_display_name_length,
            max_upload_bytes=storage.max_upload_bytes,
            request_timeout=storage.request_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # public operations
    # ------------------------------------------------------------------

    async def upload(
        self,
        identity: IdentityContext,
        display_name: str,
        data: bytes,
        declared_type: str,
    ) -> Skin:
        async def run() -> Skin:
            owner_id = await identity.current_owner_id()
            name = self._clean_display_name(display_name)
            self._check_payload(data, declared_type)
            return await self._upload(owner_id, name, bytes(data), declared_type)

        return await self._bounded(run())

    async def list_skins(self, identity: IdentityContext) -> list[Skin]:
        async def run() -> list[Skin]:
            owner_id = await identity.current_owner_id()
            async with self.session_factory() as session:
                repository = self.repository_factory(session)
                skins = await repository.list_by_owner(owner_id)
            return list(skins)

        return await self._bounded(run())

    async def get(self, identity: IdentityContext, skin_id: str) -> Skin:
        async def run() -> Skin:
            owner_id = await identity.current_owner_id()
            return await self._fetch_owned(skin_id, owner_id)

        return await self._bounded(run())

    async def read_content(self, identity: IdentityContext, skin_id: str) -> SkinContent:
        async def run() -> SkinContent:
            owner_id = await identity.current_owner_id()
            skin = await self._fetch_owned(skin_id, owner_id)
            try:
                data = await asyncio.to_thread(self.blob_store.read, skin.storage_key)
            except BlobNotFoundError as exc:
                # row was deleted between the lookup and the read
                raise SkinNotFoundError(skin_id) from exc
            except BlobStoreError as exc:
                raise SkinStorageError("读取皮肤文件失败") from exc
            content_type = detect_content_type(data) or "application/octet-stream"
            return SkinContent(skin=skin, content_type=content_type, data=data)

        return await self._bounded(run())

    async def edit(
        self,
        identity: IdentityContext,
        skin_id: str,
        *,
        display_name: Optional[str] = None,
        data: Optional[bytes] = None,
        declared_type: Optional[str] = None,
    ) -> Skin:
        async def run() -> Skin:
            owner_id = await identity.current_owner_id()
            return await self._edit(owner_id, skin_id, display_name, data, declared_type)

        return await self._bounded(run())

    async def delete(self, identity: IdentityContext, skin_id: str) -> None:
        removed: list[Skin] = []

        async def run() -> None:
            owner_id = await identity.current_owner_id()
            skin = await self._delete_row(owner_id, skin_id)
            removed.append(skin)
            await self._delete_blob(skin)

        try:
            await self._bounded(run())
        except SkinUnavailableError:
            if not removed:
                raise
            # 记录已删除，文件清理超时只留下孤立文件
            skin = removed[0]
            logger.warning("skin blob delete timed out, possible orphan skin=%s key=%s", skin.id, skin.storage_key)

    # ------------------------------------------------------------------
    # workflows
    # ------------------------------------------------------------------

    async def _upload(self, owner_id: str, name: str, data: bytes, declared_type: str) -> Skin:
        storage_key: str | None = None
        write: asyncio.Future | None = None
        try:
            async with self.session_factory() as session:
                repository = self.repository_factory(session)
                async with session.begin():
                    # count and insert share one locked transaction
                    if not await repository.lock_owner(owner_id):
                        raise SkinForbiddenError("账号不存在")
                    count = await repository.count_by_owner(owner_id)
                    if count >= MAX_SKINS_PER_USER:
                        raise SkinQuotaExceededError(f"每个用户最多保存 {MAX_SKINS_PER_USER} 个皮肤")

                    storage_key = self.blob_store.new_key()
                    write = asyncio.ensure_future(
                        asyncio.to_thread(self.blob_store.put, storage_key, data, declared_type)
                    )
                    await asyncio.shield(write)
                    skin = await repository.create(
                        owner_id=owner_id,
                        display_name=name,
                        storage_key=storage_key,
                    )
        except BaseException as exc:
            if write is not None and storage_key is not None:
                await self._discard_blob(storage_key, write)
            if isinstance(exc, BlobInvalidTypeError):
                raise SkinValidationError(str(exc)) from exc
            if isinstance(exc, BlobStoreError):
                raise SkinStorageError("保存皮肤文件失败") from exc
            if write is not None and isinstance(exc, SQLAlchemyError):
                raise SkinStorageError("保存皮肤记录失败") from exc
            raise

        logger.info("skin uploaded owner=%s skin=%s key=%s size=%d", owner_id, skin.id, storage_key, len(data))
        return skin

    async def _edit(
        self,
        owner_id: str,
        skin_id: str,
        display_name: Optional[str],
        data: Optional[bytes],
        declared_type: Optional[str],
    ) -> Skin:
        async with self.session_factory() as session:
            repository = self.repository_factory(session)
            skin = await self._load_owned(repository, skin_id, owner_id)

            if display_name is None and data is None:
                raise SkinValidationError("没有需要修改的内容")
            name = self._clean_display_name(display_name) if display_name is not None else None
            if data is not None:
                if declared_type is None:
                    raise SkinValidationError("替换文件时必须提供文件类型")
                self._check_payload(data, declared_type)

            if name is not None:
                await repository.update_display_name(skin.id, name)

            if data is None:
                await session.commit()
            else:
                # Once the swap has started it runs to the commit even if the
                # caller is cancelled, so name and file always change together.
                # A commit failure after a successful swap leaves the new file
                # under the old name.
                finish = asyncio.ensure_future(
                    self._replace_and_commit(session, skin, bytes(data), declared_type)
                )
                try:
                    await asyncio.shield(finish)
                except asyncio.CancelledError:
                    await asyncio.wait([finish])
                    if finish.exception() is None:
                        logger.warning("skin edit completed after cancellation owner=%s skin=%s", owner_id, skin.id)
                    raise

            updated = await repository.get_by_id(skin.id)

        if updated is None:
            raise SkinNotFoundError(skin_id)
        logger.info(
            "skin edited owner=%s skin=%s renamed=%s replaced=%s",
            owner_id,
            skin.id,
            name is not None,
            data is not None,
        )
        return updated

    async def _delete_row(self, owner_id: str, skin_id: str) -> Skin:
        async with self.session_factory() as session:
            repository = self.repository_factory(session)
            async with session.begin():
                skin = await self._load_owned(repository, skin_id, owner_id)
                await repository.delete_by_id(skin.id)

        logger.info("skin deleted owner=%s skin=%s", owner_id, skin.id)
        return skin

    async def _delete_blob(self, skin: Skin) -> None:
        # the row is gone for every reader from here on
        try:
            await asyncio.to_thread(self.blob_store.delete, skin.storage_key)
        except BlobNotFoundError:
            logger.warning("skin blob already absent skin=%s key=%s", skin.id, skin.storage_key)
        except BlobStoreError:
            logger.warning("orphaned skin blob skin=%s key=%s", skin.id, skin.storage_key, exc_info=True)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _replace_and_commit(self, session: AsyncSession, skin: Skin, data: bytes, declared_type: str) -> None:
        try:
            await asyncio.to_thread(self.blob_store.replace, skin.storage_key, data, declared_type)
        except BlobNotFoundError as exc:
            raise SkinNotFoundError(skin.id) from exc
        except BlobInvalidTypeError as exc:
            raise SkinValidationError(str(exc)) from exc
        except BlobStoreError as exc:
            raise SkinStorageError("替换皮肤文件失败") from exc
        await session.commit()

    async def _fetch_owned(self, skin_id: str, owner_id: str) -> Skin:
        async with self.session_factory() as session:
            repository = self.repository_factory(session)
            return await self._load_owned(repository, skin_id, owner_id)

    async def _load_owned(self, repository: SkinRepository, skin_id: str, owner_id: str) -> Skin:
        skin = await repository.get_by_id(skin_id, for_update=True)
        if skin is None:
            raise SkinNotFoundError(skin_id)
        if skin.owner_id != owner_id:
            raise SkinForbiddenError("无权操作该皮肤")
        return skin

    async def _discard_blob(self, storage_key: str, write: asyncio.Future) -> None:
        # wait for the worker thread so the delete cannot race the rename
        try:
            await write
        except BlobStoreError:
            return
        try:
            await asyncio.to_thread(self.blob_store.delete, storage_key)
        except BlobNotFoundError:
            return
        except BlobStoreError:
            logger.error("compensating delete failed key=%s", storage_key, exc_info=True)
            return
        logger.info("compensating delete key=%s", storage_key)

    def _clean_display_name(self, display_name: object) -> str:
        if not isinstance(display_name, str):
            raise SkinValidationError("皮肤名称必须是字符串")
        name = display_name.strip()
        if not name:
            raise SkinValidationError("皮肤名称不能为空")
        if len(name) > self.max_display_name_length:
            raise SkinValidationError(f"皮肤名称不能超过 {self.max_display_name_length} 个字符")
        if any(not ch.isprintable() for ch in name):
            raise SkinValidationError("皮肤名称包含非法字符")
        return name

    def _check_payload(self, data: object, declared_type: object) -> None:
        if declared_type not in self.blob_store.allowed_types:
            raise SkinValidationError(f"不支持的文件类型: {declared_type}")
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise SkinValidationError("文件内容必须是二进制数据")
        size = len(data)
        if size == 0:
            raise SkinValidationError("上传的文件为空")
        if size > self.max_upload_bytes:
            raise SkinValidationError(f"文件大小不能超过 {self.max_upload_bytes} 字节")
        if detect_content_type(bytes(data[:16])) != declared_type:
            raise SkinValidationError(f"文件内容与声明的类型不符: {declared_type}")

    async def _bounded(self, operation: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(operation, self.request_timeout)
        except SkinError:
            raise
        except asyncio.TimeoutError as exc:
            raise SkinUnavailableError("请求超时") from exc
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            raise SkinUnavailableError("数据库暂不可用") from exc
        except DBAPIError as exc:
            raise SkinStorageError("数据库写入失败") from exc


__all__ = ["SkinService", "MAX_SKINS_PER_USER"]
