"""Password hashing for the accounts that own skins."""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes of the secret
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    encoded = password.encode("utf-8")
    if not encoded or len(encoded) > _BCRYPT_MAX_BYTES:
        raise ValueError("密码长度必须在 1 到 72 字节之间")
    return encoded


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


__all__ = ["hash_password", "verify_password"]
