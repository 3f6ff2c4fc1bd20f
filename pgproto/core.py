"""Shared helpers for encoding values in the Postgres wire format."""

from __future__ import annotations

import struct

I16_MAX = 2**15 - 1
I32_MAX = 2**31 - 1

_NULL_LENGTH = struct.pack(">i", -1)


class ProtocolError(ValueError):
    """Raised when data cannot be represented in the Postgres wire format."""


def _check(value: int, limit: int) -> int:
    if value > limit:
        raise ProtocolError("value too large to transmit")
    return value


def check_i16(value: int) -> int:
    """Return ``value`` if it fits in a signed 16-bit integer, else raise."""
    return _check(value, I16_MAX)


def check_i32(value: int) -> int:
    """Return ``value`` if it fits in a signed 32-bit integer, else raise."""
    return _check(value, I32_MAX)


def write_nullable(data: bytes | bytearray | memoryview | None) -> bytes:
    """Encode a value prefixed by its 32-bit length, or -1 for ``NULL``."""
    if data is None:
        return _NULL_LENGTH
    payload = bytes(data)
    return struct.pack(">i", check_i32(len(payload))) + payload