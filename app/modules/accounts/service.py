"""Domain services for account management."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.crypto import hash_password, verify_password

from .exceptions import AccountAlreadyExistsError, AccountInactiveError, AccountNotFoundError
from .models import Account, AccountCreateInput
from .repository import AccountRepository


class AccountService:
    """Encapsulates the account use cases the skin store relies on."""

    def __init__(self, repository: AccountRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        # 延迟导入仓储实现，避免循环依赖
        from app.infrastructure.database.repositories.account_repository import SqlAccountRepository

        return cls(SqlAccountRepository(session))

    async def get_by_id(self, account_id: str) -> Account | None:
        return await self._repository.get_by_id(account_id)

    async def get_by_username(self, username: str) -> Account | None:
        return await self._repository.get_by_username(username)

    async def authenticate(self, username: str, password: str) -> Account | None:
        account = await self._repository.get_by_username(username)
        if account is None or not account.is_active:
            return None
        if not verify_password(password, account.password_hash):
            return None
        await self._repository.set_last_login(account.id, datetime.now(timezone.utc))
        return account

    async def create_account(self, payload: AccountCreateInput) -> Account:
        existing = await self._repository.get_by_username(payload.username)
        if existing is not None:
            raise AccountAlreadyExistsError(f"用户名已存在: {payload.username}")

        return await self._repository.create_account(
            username=payload.username,
            password_hash=hash_password(payload.password),
            is_active=payload.is_active,
        )

    async def require_active(self, account_id: str) -> Account:
        account = await self._repository.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if not account.is_active:
            raise AccountInactiveError(account_id)
        return account
