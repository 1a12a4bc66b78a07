"""Skin store error kinds.

Each error carries a stable ``kind`` so the web layer can map it to a
transport status without inspecting messages.
"""


class SkinError(Exception):
    """Base class for skin store errors."""

    kind = "error"


class SkinValidationError(SkinError):
    """Raised for malformed input: bad name, bad content type, bad payload."""

    kind = "validation"


class SkinQuotaExceededError(SkinError):
    """Raised when the owner already holds the maximum number of skins."""

    kind = "quota_exceeded"


class SkinNotFoundError(SkinError):
    """Raised when the skin id is unknown or already deleted."""

    kind = "not_found"


class SkinForbiddenError(SkinError):
    """Raised when the caller does not own the skin."""

    kind = "forbidden"


class SkinStorageError(SkinError):
    """Raised when the blob store or metadata write fails."""

    kind = "storage"


class SkinStorageKeyConflictError(SkinStorageError):
    """Raised when a storage key is already referenced by another row."""


class SkinUnavailableError(SkinError):
    """Raised on timeouts or when the database cannot be reached."""

    kind = "unavailable"
