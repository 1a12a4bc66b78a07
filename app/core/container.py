"""Simple dependency container for wiring core services."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.infrastructure.database.session import build_engine, create_session_factory
from app.modules.skins import SkinService


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    skin_service: SkinService

    @classmethod
    def build(cls, settings: Settings) -> "ApplicationContainer":
        engine = build_engine(settings)
        session_factory = create_session_factory(engine)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            skin_service=SkinService.from_settings(session_factory, settings),
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


@lru_cache()
def get_container() -> ApplicationContainer:
    return ApplicationContainer.build(get_settings())


__all__ = ["ApplicationContainer", "get_container"]
