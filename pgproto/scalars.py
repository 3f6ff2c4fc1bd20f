"""Binary encoding of scalar Postgres values.

Every ``*_to_sql`` function returns the encoded value as ``bytes``; every
``*_from_sql`` function decodes a complete value and raises
:class:`~pgproto.core.ProtocolError` if the buffer is malformed.
"""

from __future__ import annotations

import struct

from .core import ProtocolError

_SIZE_MISMATCH = "invalid buffer size"


def _pack(fmt: str, value: int | float) -> bytes:
    try:
        return struct.pack(fmt, value)
    except struct.error as exc:
        raise ProtocolError(str(exc)) from exc


def _unpack(fmt: str, buf: bytes, trailing_message: str = _SIZE_MISMATCH) -> int | float:
    data = bytes(buf)
    size = struct.calcsize(fmt)
    if len(data) < size:
        raise ProtocolError("failed to fill whole buffer")
    if len(data) > size:
        raise ProtocolError(trailing_message)
    (value,) = struct.unpack(fmt, data)
    return value


def _fixed(value: bytes, size: int, kind: str) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ProtocolError(f"{kind} must be exactly {size} bytes")
    return data


def bool_to_sql(value: bool) -> bytes:
    """Encode a ``BOOL`` value as a single byte, 1 for true and 0 for false."""
    return _pack(">B", int(bool(value)))


def bool_from_sql(buf: bytes) -> bool:
    """Decode a ``BOOL`` value."""
    data = bytes(buf)
    if len(data) != 1:
        raise ProtocolError(_SIZE_MISMATCH)
    return data[0] != 0


def bytea_to_sql(value: bytes) -> bytes:
    """Encode a ``BYTEA`` value."""
    return bytes(value)


def bytea_from_sql(buf: bytes) -> bytes:
    """Decode a ``BYTEA`` value."""
    return bytes(buf)


def text_to_sql(value: str) -> bytes:
    """Encode a ``TEXT``, ``VARCHAR``, ``CHAR(n)``, ``NAME`` or ``CITEXT`` value."""
    return value.encode("utf-8")


def text_from_sql(buf: bytes) -> str:
    """Decode a ``TEXT``, ``VARCHAR``, ``CHAR(n)``, ``NAME`` or ``CITEXT`` value."""
    try:
        return bytes(buf).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProtocolError(str(exc)) from exc


def char_to_sql(value: int) -> bytes:
    """Encode a ``"char"`` value (a signed byte)."""
    return _pack(">b", value)


def char_from_sql(buf: bytes) -> int:
    """Decode a ``"char"`` value (a signed byte)."""
    return int(_unpack(">b", buf))


def int2_to_sql(value: int) -> bytes:
    """Encode an ``INT2`` value."""
    return _pack(">h", value)


def int2_from_sql(buf: bytes) -> int:
    """Decode an ``INT2`` value."""
    return int(_unpack(">h", buf))


def int4_to_sql(value: int) -> bytes:
    """Encode an ``INT4`` value."""
    return _pack(">i", value)


def int4_from_sql(buf: bytes) -> int:
    """Decode an ``INT4`` value."""
    return int(_unpack(">i", buf))


def oid_to_sql(value: int) -> bytes:
    """Encode an ``OID`` value."""
    return _pack(">I", value)


def oid_from_sql(buf: bytes) -> int:
    """Decode an ``OID`` value."""
    return int(_unpack(">I", buf))


def int8_to_sql(value: int) -> bytes:
    """Encode an ``INT8`` value."""
    return _pack(">q", value)


def int8_from_sql(buf: bytes) -> int:
    """Decode an ``INT8`` value."""
    return int(_unpack(">q", buf))


def lsn_to_sql(value: int) -> bytes:
    """Encode a ``PG_LSN`` value."""
    return _pack(">Q", value)


def lsn_from_sql(buf: bytes) -> int:
    """Decode a ``PG_LSN`` value."""
    return int(_unpack(">Q", buf))


def float4_to_sql(value: float) -> bytes:
    """Encode a ``FLOAT4`` value."""
    return _pack(">f", value)


def float4_from_sql(buf: bytes) -> float:
    """Decode a ``FLOAT4`` value."""
    return float(_unpack(">f", buf))


def float8_to_sql(value: float) -> bytes:
    """Encode a ``FLOAT8`` value."""
    return _pack(">d", value)


def float8_from_sql(buf: bytes) -> float:
    """Decode a ``FLOAT8`` value."""
    return float(_unpack(">d", buf))


def timestamp_to_sql(value: int) -> bytes:
    """Encode a ``TIMESTAMP`` or ``TIMESTAMPTZ`` value.

    The value is the number of microseconds since midnight, January 1st, 2000.
    """
    return _pack(">q", value)


def timestamp_from_sql(buf: bytes) -> int:
    """Decode a ``TIMESTAMP`` or ``TIMESTAMPTZ`` value as microseconds since 2000-01-01."""
    return int(_unpack(">q", buf, "invalid message length: timestamp not drained"))


def date_to_sql(value: int) -> bytes:
    """Encode a ``DATE`` value given as days since January 1st, 2000."""
    return _pack(">i", value)


def date_from_sql(buf: bytes) -> int:
    """Decode a ``DATE`` value as days since January 1st, 2000."""
    return int(_unpack(">i", buf, "invalid message length: date not drained"))


def time_to_sql(value: int) -> bytes:
    """Encode a ``TIME`` or ``TIMETZ`` value given as microseconds since midnight."""
    return _pack(">q", value)


def time_from_sql(buf: bytes) -> int:
    """Decode a ``TIME`` or ``TIMETZ`` value as microseconds since midnight."""
    return int(_unpack(">q", buf, "invalid message length: time not drained"))


def macaddr_to_sql(value: bytes) -> bytes:
    """Encode a ``MACADDR`` value from its 6 bytes."""
    return _fixed(value, 6, "macaddr")


def macaddr_from_sql(buf: bytes) -> bytes:
    """Decode a ``MACADDR`` value into its 6 bytes."""
    data = bytes(buf)
    if len(data) != 6:
        raise ProtocolError("invalid message length: macaddr length mismatch")
    return data


def uuid_to_sql(value: bytes) -> bytes:
    """Encode a ``UUID`` value from its 16 bytes."""
    return _fixed(value, 16, "uuid")


def uuid_from_sql(buf: bytes) -> bytes:
    """Decode a ``UUID`` value into its 16 bytes."""
    data = bytes(buf)
    if len(data) != 16:
        raise ProtocolError("invalid message length: uuid size mismatch")
    return data