"""SQLAlchemy-backed repository implementations."""

from .account_repository import SqlAccountRepository
from .skin_repository import SqlSkinRepository

__all__ = [
    "SqlAccountRepository",
    "SqlSkinRepository",
]
