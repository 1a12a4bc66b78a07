"""Skin service dependency providers."""

from fastapi import Depends

from app.core.container import ApplicationContainer
from app.modules.skins import SkinService

from .identity import get_app_container


def get_skin_service(container: ApplicationContainer = Depends(get_app_container)) -> SkinService:
    return container.skin_service


__all__ = [
    "get_skin_service",
]
