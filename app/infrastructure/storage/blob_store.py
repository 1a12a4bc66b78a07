"""Filesystem blob store for skin files.

Layout under the storage root::

    <root>/<key[:2]>/<key>     committed blobs
    <root>/.tmp/<random>       in-flight writes, same filesystem as blobs

Keys are 32 hex characters produced by :meth:`FilesystemBlobStore.new_key`.
Nothing here knows about owners, names or quotas.
"""

from __future__ import annotations

import logging
import os
import secrets
import tempfile
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_TYPES = ("image/png", "image/jpeg")

_SIGNATURES = {
    "image/png": b"\x89PNG\r\n\x1a\n",
    "image/jpeg": b"\xff\xd8\xff",
}
_KEY_LENGTH = 32
_HEX = frozenset("0123456789abcdef")
_TMP_DIR_NAME = ".tmp"


class BlobStoreError(Exception):
    """Base class for blob store failures."""


class BlobInvalidTypeError(BlobStoreError):
    """Declared type is not allowed or the bytes do not match it."""


class BlobNotFoundError(BlobStoreError):
    """No blob is stored under the key."""


class BlobIOError(BlobStoreError):
    """The filesystem refused the operation."""


class BlobKeyError(BlobStoreError):
    """The key is not a token issued by this store."""


def detect_content_type(data: bytes) -> str | None:
    """Return the image type implied by the leading magic bytes, if known."""
    for content_type, signature in _SIGNATURES.items():
        if data.startswith(signature):
            return content_type
    return None


def _is_valid_key(key: str) -> bool:
    return len(key) == _KEY_LENGTH and all(ch in _HEX for ch in key)


def _fsync_dir(path: Path) -> None:
    if not hasattr(os, "O_DIRECTORY"):
        return
    fd = os.open(path, os.O_RDONLY | os.O_DIRECTORY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class FilesystemBlobStore:
    """Stores raw bytes under opaque keys with atomic rename semantics."""

    def __init__(self, root_dir: str | Path, allowed_types: Iterable[str] = DEFAULT_ALLOWED_TYPES) -> None:
        self.root_dir = Path(root_dir).resolve()
        self.tmp_dir = self.root_dir / _TMP_DIR_NAME
        self.allowed_types = frozenset(allowed_types)
        self.ensure_storage()

    def ensure_storage(self) -> None:
        """Create the storage directories if they do not exist."""
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.tmp_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def new_key() -> str:
        return secrets.token_hex(_KEY_LENGTH // 2)

    def path_for(self, key: str) -> Path:
        if not isinstance(key, str) or not _is_valid_key(key):
            raise BlobKeyError(f"无效的存储键: {key!r}")
        return self.root_dir / key[:2] / key

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def read(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(key) from exc
        except OSError as exc:
            raise BlobIOError(f"读取文件失败: {key}") from exc

    def check_type(self, data: bytes, declared_type: str) -> None:
        if declared_type not in self.allowed_types:
            raise BlobInvalidTypeError(f"不支持的文件类型: {declared_type}")
        if detect_content_type(data) != declared_type:
            raise BlobInvalidTypeError(f"文件内容与声明的类型不符: {declared_type}")

    def put(self, key: str, data: bytes, declared_type: str) -> None:
        """Write a new blob. Readers see either nothing or the full file."""
        self.check_type(data, declared_type)
        dest = self.path_for(key)
        if dest.exists():
            raise BlobIOError(f"存储键已存在: {key}")
        self._write_atomic(dest, data)
        logger.debug("blob stored key=%s size=%d", key, len(data))

    def replace(self, key: str, data: bytes, declared_type: str) -> None:
        """Swap new content in place of an existing blob.

        The rename is the commit point: before it the old file is intact,
        after it the new one is.
        """
        self.check_type(data, declared_type)
        dest = self.path_for(key)
        if not dest.is_file():
            raise BlobNotFoundError(key)
        self._write_atomic(dest, data)
        logger.debug("blob replaced key=%s size=%d", key, len(data))

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise BlobNotFoundError(key) from exc
        except OSError as exc:
            raise BlobIOError(f"删除文件失败: {key}") from exc
        logger.debug("blob deleted key=%s", key)

    def iter_keys(self) -> Iterator[str]:
        """Yield every committed key, skipping in-flight temp files."""
        for shard in sorted(self.root_dir.iterdir()):
            if not shard.is_dir() or shard.name == _TMP_DIR_NAME:
                continue
            for entry in sorted(shard.iterdir()):
                if entry.is_file() and _is_valid_key(entry.name) and entry.name[:2] == shard.name:
                    yield entry.name

    def _write_atomic(self, dest: Path, data: bytes) -> None:
        fd = None
        tmp_path = None
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f"{dest.name}.", dir=str(self.tmp_dir))
            with os.fdopen(fd, "wb") as f:
                fd = None
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, dest)
            tmp_path = None
        except OSError as exc:
            raise BlobIOError(f"写入文件失败: {dest.name}") from exc
        finally:
            if fd is not None:
                os.close(fd)
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
        try:
            _fsync_dir(dest.parent)
        except OSError:
            logger.warning("directory fsync failed for %s", dest.parent)
