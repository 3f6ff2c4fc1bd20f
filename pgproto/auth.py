"""Helpers for answering authentication requests from the server."""

from __future__ import annotations

import hashlib


def md5_hash(username: bytes, password: bytes, salt: bytes) -> str:
    """Hash credentials for a reply to an ``AuthenticationMd5Password`` request.

    The result is sent back to the server in a ``PasswordMessage``.
    """
    salt = bytes(salt)
    if len(salt) != 4:
        raise ValueError("salt must be exactly 4 bytes")
    inner = hashlib.md5(bytes(password) + bytes(username)).hexdigest()
    outer = hashlib.md5(inner.encode("ascii") + salt).hexdigest()
    return f"md5{outer}"