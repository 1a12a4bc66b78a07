"""Tests for identity resolution, tokens and password hashing."""

from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.crypto import hash_password, verify_password
from app.core.identity import StaticIdentity, UnauthenticatedError
from app.core.security import TokenIdentity, create_access_token, decode_access_token
from app.modules.accounts import AccountAlreadyExistsError, AccountCreateInput, AccountService


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    @pytest.mark.parametrize("password", ["", "x" * 73])
    def test_out_of_range_passwords(self, password):
        with pytest.raises(ValueError):
            hash_password(password)
        assert verify_password(password, hash_password("valid-password")) is False


class TestTokens:
    def test_round_trip(self, settings):
        token = create_access_token("acc-1", "alice", settings=settings)
        data = decode_access_token(token, settings)
        assert data.account_id == "acc-1"
        assert data.username == "alice"

    def test_expired_token(self, settings):
        token = create_access_token("acc-1", "alice", expires_delta=timedelta(seconds=-5), settings=settings)
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token, settings)

    def test_foreign_signature(self, settings):
        other = settings.model_copy(update={"security": settings.security.model_copy(update={"secret_key": "another-key"})})
        token = create_access_token("acc-1", "alice", settings=other)
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token, settings)


class TestIdentity:
    @pytest.mark.asyncio
    async def test_static_identity(self):
        assert await StaticIdentity("acc-1").current_owner_id() == "acc-1"
        with pytest.raises(UnauthenticatedError):
            await StaticIdentity("").current_owner_id()

    @pytest.mark.asyncio
    async def test_token_identity_resolves_active_account(self, settings, session_factory, make_account):
        account = await make_account("carol")
        token = create_access_token(account.id, account.username, settings=settings)

        identity = TokenIdentity(token, session_factory, settings)
        assert await identity.current_owner_id() == account.id

    @pytest.mark.asyncio
    async def test_token_identity_rejects_inactive_account(self, settings, session_factory, make_account):
        account = await make_account("dave", is_active=False)
        token = create_access_token(account.id, account.username, settings=settings)

        with pytest.raises(UnauthenticatedError):
            await TokenIdentity(token, session_factory, settings).current_owner_id()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    async def test_token_identity_rejects_bad_tokens(self, settings, session_factory, token):
        with pytest.raises(UnauthenticatedError):
            await TokenIdentity(token, session_factory, settings).current_owner_id()


class TestAccountService:
    @pytest.mark.asyncio
    async def test_create_and_authenticate(self, session_factory):
        async with session_factory() as session:
            service = AccountService.with_session(session)
            account = await service.create_account(AccountCreateInput(username="erin", password="hunter22"))
            await session.commit()

            assert await service.authenticate("erin", "hunter22") is not None
            assert await service.authenticate("erin", "wrong") is None
            assert await service.authenticate("nobody", "hunter22") is None
            assert (await service.get_by_username("erin")).id == account.id

    @pytest.mark.asyncio
    async def test_duplicate_username(self, session_factory, make_account):
        await make_account("frank")
        async with session_factory() as session:
            service = AccountService.with_session(session)
            with pytest.raises(AccountAlreadyExistsError):
                await service.create_account(AccountCreateInput(username="frank", password="whatever1"))
