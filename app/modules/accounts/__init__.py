"""Account domain services and models."""

from .models import Account, AccountCreateInput
from .service import AccountService
from .exceptions import (
    AccountError,
    AccountAlreadyExistsError,
    AccountInactiveError,
    AccountNotFoundError,
)

__all__ = [
    "Account",
    "AccountCreateInput",
    "AccountService",
    "AccountError",
    "AccountAlreadyExistsError",
    "AccountInactiveError",
    "AccountNotFoundError",
]
