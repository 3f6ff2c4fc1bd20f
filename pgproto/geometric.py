"""Binary encoding of Postgres geometric and network address values."""

from __future__ import annotations

import ipaddress
import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from .core import ProtocolError, check_i32

PGSQL_AF_INET = 2
PGSQL_AF_INET6 = 3

_POINT = struct.Struct(">dd")

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class _Reader:
    def __init__(self, buf: bytes) -> None:
        self._data = bytes(buf)
        self._pos = 0

    @property
    def remaining(self) -> bytes:
        return self._data[self._pos :]

    def take(self, size: int) -> bytes:
        if len(self._data) - self._pos < size:
            raise ProtocolError("failed to fill whole buffer")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def unpack(self, fmt: str) -> tuple:
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))

    def ensure_drained(self, message: str = "invalid buffer size") -> None:
        if self._pos != len(self._data):
            raise ProtocolError(message)


@dataclass(frozen=True)
class Point:
    """A Postgres point."""

    x: float
    y: float


@dataclass(frozen=True)
class Box:
    """A Postgres box."""

    upper_right: Point
    lower_left: Point


@dataclass(frozen=True)
class Path:
    """A Postgres path, whose points are decoded lazily."""

    closed: bool
    _count: int = field(repr=False)
    _data: bytes = field(repr=False)

    def points(self) -> Iterator[Point]:
        """Yield the points of the path in order."""
        reader = _Reader(self._data)
        remaining = self._count
        while remaining != 0:
            remaining -= 1
            x, y = reader.unpack(">dd")
            yield Point(x, y)
        reader.ensure_drained("invalid message length: path points not drained")


@dataclass(frozen=True)
class Inet:
    """A Postgres network address with its netmask."""

    addr: IPAddress
    netmask: int


def point_to_sql(x: float, y: float) -> bytes:
    """Encode a point."""
    return _POINT.pack(x, y)


def point_from_sql(buf: bytes) -> Point:
    """Decode a point."""
    reader = _Reader(buf)
    x, y = reader.unpack(">dd")
    reader.ensure_drained()
    return Point(x, y)


def box_to_sql(x1: float, y1: float, x2: float, y2: float) -> bytes:
    """Encode a box from its upper right and lower left corners."""
    return _POINT.pack(x1, y1) + _POINT.pack(x2, y2)


def box_from_sql(buf: bytes) -> Box:
    """Decode a box."""
    reader = _Reader(buf)
    x1, y1, x2, y2 = reader.unpack(">dddd")
    reader.ensure_drained()
    return Box(upper_right=Point(x1, y1), lower_left=Point(x2, y2))


def path_to_sql(closed: bool, points: Iterable[tuple[float, float]]) -> bytes:
    """Encode a path from an iterable of ``(x, y)`` pairs."""
    encoded = [_POINT.pack(x, y) for x, y in points]
    header = struct.pack(">Bi", 1 if closed else 0, check_i32(len(encoded)))
    return header + b"".join(encoded)


def path_from_sql(buf: bytes) -> Path:
    """Decode a path; its points are checked as they are iterated."""
    reader = _Reader(buf)
    closed, count = reader.unpack(">Bi")
    return Path(closed != 0, count, reader.remaining)


def inet_to_sql(addr: IPAddress | str, netmask: int) -> bytes:
    """Encode an ``INET`` value."""
    ip = ipaddress.ip_address(addr) if isinstance(addr, str) else addr
    family = PGSQL_AF_INET if ip.version == 4 else PGSQL_AF_INET6
    packed = ip.packed
    try:
        header = bytes([family, netmask, 0, len(packed)])
    except ValueError as exc:
        raise ProtocolError("netmask must fit in one byte") from exc
    return header + packed


def inet_from_sql(buf: bytes) -> Inet:
    """Decode an ``INET`` value."""
    reader = _Reader(buf)
    family, netmask, _is_cidr, length = reader.unpack(">BBBB")

    addr: IPAddress
    if family == PGSQL_AF_INET:
        if netmask > 32:
            raise ProtocolError("invalid IPv4 netmask")
        if length != 4:
            raise ProtocolError("invalid IPv4 address length")
        addr = ipaddress.IPv4Address(reader.take(4))
    elif family == PGSQL_AF_INET6:
        if netmask > 128:
            raise ProtocolError("invalid IPv6 netmask")
        if length != 16:
            raise ProtocolError("invalid IPv6 address length")
        addr = ipaddress.IPv6Address(reader.take(16))
    else:
        raise ProtocolError("invalid IP family")

    reader.ensure_drained()
    return Inet(addr, netmask)