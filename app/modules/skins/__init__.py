"""Skin store: user-owned image files backed by a database row each."""

from .exceptions import (
    SkinError,
    SkinForbiddenError,
    SkinNotFoundError,
    SkinQuotaExceededError,
    SkinStorageError,
    SkinStorageKeyConflictError,
    SkinUnavailableError,
    SkinValidationError,
)
from .models import MAX_SKINS_PER_USER, Skin, SkinContent
from .service import SkinService

__all__ = [
    "MAX_SKINS_PER_USER",
    "Skin",
    "SkinContent",
    "SkinService",
    "SkinError",
    "SkinForbiddenError",
    "SkinNotFoundError",
    "SkinQuotaExceededError",
    "SkinStorageError",
    "SkinStorageKeyConflictError",
    "SkinUnavailableError",
    "SkinValidationError",
]
