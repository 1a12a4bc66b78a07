"""Durable file storage for skin blobs."""

from .blob_store import (
    BlobInvalidTypeError,
    BlobIOError,
    BlobKeyError,
    BlobNotFoundError,
    BlobStoreError,
    FilesystemBlobStore,
    detect_content_type,
)

__all__ = [
    "BlobInvalidTypeError",
    "BlobIOError",
    "BlobKeyError",
    "BlobNotFoundError",
    "BlobStoreError",
    "FilesystemBlobStore",
    "detect_content_type",
]
