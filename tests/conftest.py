"""Shared fixtures for the skin store test suite.

Every test gets its own SQLite file and blob directory under ``tmp_path`` so
the real transaction and rename behaviour is exercised.
"""

from __future__ import annotations

import uuid

import pytest
import pytest_asyncio

from app.core.config import DatabaseSettings, SecuritySettings, Settings, StorageSettings
from app.core.identity import StaticIdentity
from app.infrastructure.database import build_engine, create_session_factory, init_db
from app.infrastructure.database.repositories import SqlAccountRepository
from app.infrastructure.storage import FilesystemBlobStore
from app.modules.skins import SkinService

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(64))
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + bytes(range(64)) + b"\xff\xd9"


def png(marker: int = 0) -> bytes:
    """PNG-signed payload whose tail differs per marker."""
    return PNG_BYTES + marker.to_bytes(4, "big")


# ---------------------------------------------------------------------------
# Settings / infrastructure
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(
            url=f"sqlite+aiosqlite:///{tmp_path / 'skins.db'}",
            busy_timeout_seconds=30.0,
        ),
        security=SecuritySettings(secret_key="test-secret-key"),
        storage=StorageSettings(skin_dir=tmp_path / "blobs", request_timeout_seconds=30.0),
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(settings)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def blob_store(settings) -> FilesystemBlobStore:
    return FilesystemBlobStore(settings.storage.skin_dir, settings.storage.allowed_content_types)


@pytest.fixture
def service(session_factory, blob_store, settings) -> SkinService:
    return SkinService(
        session_factory=session_factory,
        blob_store=blob_store,
        max_display_name_length=settings.storage.max_display_name_length,
        max_upload_bytes=settings.storage.max_upload_bytes,
        request_timeout=settings.storage.request_timeout_seconds,
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@pytest.fixture
def make_account(session_factory):
    """Factory inserting an account row; skips bcrypt to keep tests fast."""

    async def _make(username: str | None = None, is_active: bool = True):
        async with session_factory() as session:
            repository = SqlAccountRepository(session)
            account = await repository.create_account(
                username=username or f"user-{uuid.uuid4().hex[:8]}",
                password_hash="not-a-bcrypt-hash",
                is_active=is_active,
            )
            await session.commit()
        return account

    return _make


@pytest_asyncio.fixture
async def alice(make_account):
    account = await make_account("alice")
    return StaticIdentity(account.id)


@pytest_asyncio.fixture
async def bob(make_account):
    account = await make_account("bob")
    return StaticIdentity(account.id)
