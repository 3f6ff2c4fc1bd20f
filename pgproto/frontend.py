"""Serialization of messages sent from the client to the server.

Every function returns the complete encoded message as ``bytes``.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from .core import ProtocolError, check_i16, check_i32, write_nullable

T = TypeVar("T")

PROTOCOL_VERSION = 0x00_03_00_00
CANCEL_REQUEST_CODE = 80_877_102
SSL_REQUEST_CODE = 80_877_103


def _body(tag: bytes, payload: bytes) -> bytes:
    size = check_i32(len(payload) + 4)
    return tag + struct.pack(">i", size) + payload


def _text(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def _cstr(value: str | bytes) -> bytes:
    raw = _text(value)
    if b"\x00" in raw:
        raise ProtocolError("string contains embedded null")
    return raw + b"\x00"


def _counted(items: Iterable[T], encode: Callable[[T], bytes]) -> bytes:
    parts = [encode(item) for item in items]
    return struct.pack(">h", check_i16(len(parts))) + b"".join(parts)


def _byte(value: int | str | bytes) -> bytes:
    if isinstance(value, int):
        return bytes([value])
    raw = _text(value)
    if len(raw) != 1:
        raise ValueError("variant must be a single byte")
    return raw


def _i16(value: int) -> bytes:
    return struct.pack(">h", value)


def bind(
    portal: str,
    statement: str,
    formats: Iterable[int],
    values: Iterable[Any],
    serializer: Callable[[Any], bytes | None],
    result_formats: Iterable[int],
) -> bytes:
    """Encode a ``Bind`` message.

    ``serializer`` turns each value into its encoded bytes, or ``None``
    for ``NULL``; any exception it raises propagates unchanged.
    """
    payload = b"".join(
        (
            _cstr(portal),
            _cstr(statement),
            _counted(formats, _i16),
            _counted(values, lambda v: write_nullable(serializer(v))),
            _counted(result_formats, _i16),
        )
    )
    return _body(b"B", payload)


def cancel_request(process_id: int, secret_key: int) -> bytes:
    """Encode a ``CancelRequest`` message."""
    return _body(b"", struct.pack(">iii", CANCEL_REQUEST_CODE, process_id, secret_key))


def close(variant: int | str | bytes, name: str) -> bytes:
    """Encode a ``Close`` message for a statement (``S``) or portal (``P``)."""
    return _body(b"C", _byte(variant) + _cstr(name))


@dataclass(frozen=True)
class CopyData:
    """A ``CopyData`` message carrying a chunk of raw data."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) + 4 > 2**31 - 1:
            raise ProtocolError("message length overflow")

    def encode(self) -> bytes:
        """Return the encoded message."""
        return b"d" + struct.pack(">i", len(self.data) + 4) + self.data


def copy_done() -> bytes:
    """Encode a ``CopyDone`` message."""
    return _body(b"c", b"")


def copy_fail(message: str) -> bytes:
    """Encode a ``CopyFail`` message."""
    return _body(b"f", _cstr(message))


def describe(variant: int | str | bytes, name: str) -> bytes:
    """Encode a ``Describe`` message for a statement (``S``) or portal (``P``)."""
    return _body(b"D", _byte(variant) + _cstr(name))


def execute(portal: str, max_rows: int) -> bytes:
    """Encode an ``Execute`` message."""
    return _body(b"E", _cstr(portal) + struct.pack(">i", max_rows))


def parse(name: str, query: str, param_types: Iterable[int]) -> bytes:
    """Encode a ``Parse`` message."""
    payload = (
        _cstr(name)
        + _cstr(query)
        + _counted(param_types, lambda oid: struct.pack(">I", oid))
    )
    return _body(b"P", payload)


def password_message(password: bytes | str) -> bytes:
    """Encode a ``PasswordMessage``."""
    return _body(b"p", _cstr(password))


def query(text: str) -> bytes:
    """Encode a simple ``Query`` message."""
    return _body(b"Q", _cstr(text))


def sasl_initial_response(mechanism: str, data: bytes) -> bytes:
    """Encode a ``SASLInitialResponse`` message."""
    raw = bytes(data)
    payload = _cstr(mechanism) + struct.pack(">i", check_i32(len(raw))) + raw
    return _body(b"p", payload)


def sasl_response(data: bytes) -> bytes:
    """Encode a ``SASLResponse`` message."""
    return _body(b"p", bytes(data))


def ssl_request() -> bytes:
    """Encode an ``SSLRequest`` message."""
    return _body(b"", struct.pack(">i", SSL_REQUEST_CODE))


def startup_message(
    parameters: Mapping[str, str] | Iterable[tuple[str, str]],
) -> bytes:
    """Encode a ``StartupMessage`` for protocol version 3.0."""
    pairs = parameters.items() if isinstance(parameters, Mapping) else parameters
    payload = struct.pack(">i", PROTOCOL_VERSION)
    payload += b"".join(_cstr(key) + _cstr(value) for key, value in pairs)
    return _body(b"", payload + b"\x00")


def sync() -> bytes:
    """Encode a ``Sync`` message."""
    return _body(b"S", b"")


def terminate() -> bytes:
    """Encode a ``Terminate`` message."""
    return _body(b"X", b"")