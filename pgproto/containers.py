"""Binary encoding of Postgres container values: hstore, bit strings, arrays and ranges.

Decoders that yield several items check the buffer as they go and raise
:class:`~pgproto.core.ProtocolError` as soon as something is malformed.
"""

from __future__ import annotations

import enum
import struct
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .core import I32_MAX, ProtocolError, check_i32, write_nullable

RANGE_UPPER_UNBOUNDED = 0b0001_0000
RANGE_LOWER_UNBOUNDED = 0b0000_1000
RANGE_UPPER_INCLUSIVE = 0b0000_0100
RANGE_LOWER_INCLUSIVE = 0b0000_0010
RANGE_EMPTY = 0b0000_0001

_I32_MIN = -(2**31)


class _Reader:
    def __init__(self, buf: bytes) -> None:
        self._data = bytes(buf)
        self._pos = 0

    @property
    def remaining(self) -> bytes:
        return self._data[self._pos :]

    @property
    def is_empty(self) -> bool:
        return self._pos >= len(self._data)

    def __len__(self) -> int:
        return len(self._data) - self._pos

    def take(self, size: int) -> bytes:
        if len(self) < size:
            raise ProtocolError("failed to fill whole buffer")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def i32(self) -> int:
        (value,) = struct.unpack(">i", self.take(4))
        return value

    def u32(self) -> int:
        (value,) = struct.unpack(">I", self.take(4))
        return value

    def u8(self) -> int:
        return self.take(1)[0]


def _utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ProtocolError(str(exc)) from exc


def _pascal(value: str) -> bytes:
    raw = value.encode("utf-8")
    return struct.pack(">i", check_i32(len(raw))) + raw


# hstore


def hstore_to_sql(
    values: Mapping[str, str | None] | Iterable[tuple[str, str | None]],
) -> bytes:
    """Encode an ``HSTORE`` value from a mapping or ``(key, value)`` pairs.

    A value of ``None`` is encoded as ``NULL``.
    """
    pairs = values.items() if isinstance(values, Mapping) else values
    parts = []
    for key, value in pairs:
        entry = _pascal(key)
        entry += struct.pack(">i", -1) if value is None else _pascal(value)
        parts.append(entry)
    return struct.pack(">i", check_i32(len(parts))) + b"".join(parts)


def hstore_from_sql(buf: bytes) -> Iterator[tuple[str, str | None]]:
    """Decode an ``HSTORE`` value into an iterator of ``(key, value)`` pairs."""
    reader = _Reader(buf)
    count = reader.i32()
    if count < 0:
        raise ProtocolError("invalid entry count")
    return _hstore_entries(reader, count)


def _hstore_entries(reader: _Reader, count: int) -> Iterator[tuple[str, str | None]]:
    for _ in range(count):
        key_len = reader.i32()
        if key_len < 0:
            raise ProtocolError("invalid key length")
        key = _utf8(reader.take(key_len))

        value_len = reader.i32()
        value = None if value_len < 0 else _utf8(reader.take(value_len))
        yield key, value
    if not reader.is_empty:
        raise ProtocolError("invalid buffer size")


# bit strings


@dataclass(frozen=True)
class Varbit:
    """A ``VARBIT`` or ``BIT`` value: a bit count and the bytes holding the bits."""

    length: int
    data: bytes

    def __len__(self) -> int:
        return self.length


def varbit_to_sql(length: int, data: Iterable[int] | bytes) -> bytes:
    """Encode a ``VARBIT`` or ``BIT`` value of ``length`` bits."""
    return struct.pack(">i", check_i32(length)) + bytes(data)


def varbit_from_sql(buf: bytes) -> Varbit:
    """Decode a ``VARBIT`` or ``BIT`` value."""
    reader = _Reader(buf)
    length = reader.i32()
    if length < 0:
        raise ProtocolError("invalid varbit length: varbit < 0")
    if len(reader) != (length + 7) // 8:
        raise ProtocolError("invalid message length: varbit mismatch")
    return Varbit(length, reader.remaining)


# arrays


@dataclass(frozen=True)
class ArrayDimension:
    """One dimension of an array: its length and the index of its first element."""

    length: int
    lower_bound: int


@dataclass(frozen=True)
class Array:
    """A decoded Postgres array whose dimensions and values are read lazily."""

    has_nulls: bool
    element_type: int
    _dimension_count: int = field(repr=False)
    _element_count: int = field(repr=False)
    _data: bytes = field(repr=False)

    def dimensions(self) -> Iterator[ArrayDimension]:
        """Yield the dimensions of the array."""
        reader = _Reader(self._data[: self._dimension_count * 8])
        while not reader.is_empty:
            length = reader.i32()
            lower_bound = reader.i32()
            yield ArrayDimension(length, lower_bound)

    def values(self) -> Iterator[bytes | None]:
        """Yield the encoded values in row-major order, ``None`` for ``NULL``."""
        reader = _Reader(self._data[self._dimension_count * 8 :])
        for _ in range(self._element_count):
            length = reader.i32()
            if length < 0:
                yield None
                continue
            if len(reader) < length:
                raise ProtocolError("invalid value length")
            yield reader.take(length)
        if not reader.is_empty:
            raise ProtocolError("invalid message length: arrayvalue not drained")


def array_to_sql(
    dimensions: Iterable[ArrayDimension],
    element_type: int,
    elements: Iterable[Any],
    serializer: Callable[[Any], bytes | None],
) -> bytes:
    """Encode an array.

    ``serializer`` turns each element into its encoded bytes, or ``None``
    for ``NULL``.
    """
    dims = [struct.pack(">ii", d.length, d.lower_bound) for d in dimensions]
    encoded = [serializer(element) for element in elements]
    has_nulls = any(value is None for value in encoded)
    header = struct.pack(">iiI", check_i32(len(dims)), int(has_nulls), element_type)
    return header + b"".join(dims) + b"".join(write_nullable(v) for v in encoded)


def array_from_sql(buf: bytes) -> Array:
    """Decode an array."""
    reader = _Reader(buf)
    dimension_count = reader.i32()
    if dimension_count < 0:
        raise ProtocolError("invalid dimension count")
    has_nulls = reader.i32() != 0
    element_type = reader.u32()
    data = reader.remaining

    dims = _Reader(data)
    elements = 1
    for _ in range(dimension_count):
        length = dims.i32()
        if length < 0:
            raise ProtocolError("invalid dimension size")
        dims.i32()
        elements *= length
        if not _I32_MIN <= elements <= I32_MAX:
            raise ProtocolError("too many array elements")

    if dimension_count == 0:
        elements = 0

    return Array(has_nulls, element_type, dimension_count, elements, data)


# ranges


class BoundKind(enum.Enum):
    """How one side of a range is bounded."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class RangeBound:
    """One side of a range.

    ``value`` holds the encoded bound, or ``None`` for ``NULL``; it is
    ignored for unbounded sides.
    """

    kind: BoundKind
    value: bytes | None = None

    @classmethod
    def inclusive(cls, value: bytes | None) -> RangeBound:
        return cls(BoundKind.INCLUSIVE, value)

    @classmethod
    def exclusive(cls, value: bytes | None) -> RangeBound:
        return cls(BoundKind.EXCLUSIVE, value)

    @classmethod
    def unbounded(cls) -> RangeBound:
        return cls(BoundKind.UNBOUNDED)


@dataclass(frozen=True)
class Range:
    """A decoded Postgres range; both bounds are ``None`` for an empty range."""

    lower: RangeBound | None = None
    upper: RangeBound | None = None

    @property
    def is_empty(self) -> bool:
        return self.lower is None and self.upper is None


def empty_range_to_sql() -> bytes:
    """Encode an empty range."""
    return bytes([RANGE_EMPTY])


def _write_bound(bound: RangeBound, unbounded: int, inclusive: int) -> tuple[int, bytes]:
    if bound.kind is BoundKind.UNBOUNDED:
        return unbounded, b""
    flag = inclusive if bound.kind is BoundKind.INCLUSIVE else 0
    return flag, write_nullable(bound.value)


def range_to_sql(lower: RangeBound, upper: RangeBound) -> bytes:
    """Encode a nonempty range."""
    lower_flag, lower_data = _write_bound(
        lower, RANGE_LOWER_UNBOUNDED, RANGE_LOWER_INCLUSIVE
    )
    upper_flag, upper_data = _write_bound(
        upper, RANGE_UPPER_UNBOUNDED, RANGE_UPPER_INCLUSIVE
    )
    return bytes([lower_flag | upper_flag]) + lower_data + upper_data


def _read_bound(reader: _Reader, tag: int, unbounded: int, inclusive: int) -> RangeBound:
    if tag & unbounded:
        return RangeBound.unbounded()
    length = reader.i32()
    value: bytes | None = None
    if length >= 0:
        if len(reader) < length:
            raise ProtocolError("invalid message size")
        value = reader.take(length)
    kind = BoundKind.INCLUSIVE if tag & inclusive else BoundKind.EXCLUSIVE
    return RangeBound(kind, value)


def range_from_sql(buf: bytes) -> Range:
    """Decode a range."""
    reader = _Reader(buf)
    tag = reader.u8()

    if tag == RANGE_EMPTY:
        if not reader.is_empty:
            raise ProtocolError("invalid message size")
        return Range()

    lower = _read_bound(reader, tag, RANGE_LOWER_UNBOUNDED, RANGE_LOWER_INCLUSIVE)
    upper = _read_bound(reader, tag, RANGE_UPPER_UNBOUNDED, RANGE_UPPER_INCLUSIVE)

    if not reader.is_empty:
        raise ProtocolError("invalid message size")
    return Range(lower, upper)