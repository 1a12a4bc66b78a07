"""Account errors raised while resolving who owns a skin."""


class AccountError(Exception):
    """Base class for account errors."""


class AccountAlreadyExistsError(AccountError):
    """The username is taken."""


class AccountNotFoundError(AccountError):
    """No account with that id."""


class AccountInactiveError(AccountError):
    """The account exists but has been disabled."""
