"""JWT helpers and the token backed identity context.

The skin store trusts whatever owner id an identity context returns; all
credential checks happen here.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.core.identity import UnauthenticatedError
from app.modules.accounts import AccountError, AccountService
from app.schemas import TokenData


def create_access_token(
    account_id: str,
    username: str,
    expires_delta: Optional[timedelta] = None,
    settings: Settings | None = None,
) -> str:
    settings = settings or get_settings()
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "username": username,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings | None = None) -> TokenData:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise UnauthenticatedError("无法验证凭据") from exc

    account_id = payload.get("sub")
    username = payload.get("username")
    if not all([account_id, username]):
        raise UnauthenticatedError("无法验证凭据")
    return TokenData(account_id=account_id, username=username)


class TokenIdentity:
    """Resolves the caller from a bearer token; the account must be active."""

    def __init__(
        self,
        token: str | None,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
    ) -> None:
        self._token = token
        self._session_factory = session_factory
        self._settings = settings

    async def current_owner_id(self) -> str:
        if not self._token:
            raise UnauthenticatedError("缺少访问令牌")
        token_data = decode_access_token(self._token, self._settings)
        async with self._session_factory() as session:
            service = AccountService.with_session(session)
            try:
                account = await service.require_active(token_data.account_id)
            except AccountError as exc:
                raise UnauthenticatedError("账号不存在或已禁用") from exc
        return account.id
