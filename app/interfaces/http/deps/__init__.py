"""Reusable FastAPI dependencies."""

from .identity import get_app_container, get_identity
from .skins import get_skin_service

__all__ = [
    "get_app_container",
    "get_identity",
    "get_skin_service",
]
