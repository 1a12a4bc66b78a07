"""Caller identity as seen by the skin store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class UnauthenticatedError(Exception):
    """Raised when no verified caller identity is available."""

    kind = "unauthenticated"


class IdentityContext(Protocol):
    """Supplies the verified account id for the current request."""

    async def current_owner_id(self) -> str:
        ...


@dataclass(slots=True, frozen=True)
class StaticIdentity:
    """Identity already verified by the caller, e.g. a CLI or a test."""

    owner_id: str

    async def current_owner_id(self) -> str:
        if not self.owner_id:
            raise UnauthenticatedError("缺少用户身份")
        return self.owner_id


__all__ = ["IdentityContext", "StaticIdentity", "UnauthenticatedError"]
