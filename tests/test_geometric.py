import ipaddress

import pytest

from pgproto.core import ProtocolError
from pgproto.geometric import (
    Point,
    box_from_sql,
    box_to_sql,
    inet_from_sql,
    inet_to_sql,
    path_from_sql,
    path_to_sql,
    point_from_sql,
    point_to_sql,
)


def test_point_round_trip():
    point = point_from_sql(point_to_sql(1.5, -2.25))
    assert point == Point(1.5, -2.25)


def test_point_trailing_data():
    with pytest.raises(ProtocolError, match="invalid buffer size"):
        point_from_sql(point_to_sql(1.0, 2.0) + b"\x00")


def test_point_short_buffer():
    with pytest.raises(ProtocolError):
        point_from_sql(point_to_sql(1.0, 2.0)[:-1])


def test_box_round_trip():
    box = box_from_sql(box_to_sql(1.0, 2.0, 3.0, 4.0))
    assert box.upper_right == Point(1.0, 2.0)
    assert box.lower_left == Point(3.0, 4.0)


def test_box_trailing_data():
    with pytest.raises(ProtocolError, match="invalid buffer size"):
        box_from_sql(box_to_sql(1.0, 2.0, 3.0, 4.0) + b"\x00")


def test_path_round_trip_closed():
    points = [(0.0, 0.0), (1.0, 2.0), (-3.5, 4.25)]
    path = path_from_sql(path_to_sql(True, points))
    assert path.closed is True
    assert [(p.x, p.y) for p in path.points()] == points


def test_path_open_empty():
    path = path_from_sql(path_to_sql(False, []))
    assert path.closed is False
    assert list(path.points()) == []


def test_path_points_not_drained():
    path = path_from_sql(path_to_sql(False, [(1.0, 2.0)]) + b"\x00")
    with pytest.raises(ProtocolError, match="path points not drained"):
        list(path.points())


def test_path_missing_points():
    encoded = path_to_sql(True, [(1.0, 2.0), (3.0, 4.0)])
    path = path_from_sql(encoded[:-16])
    with pytest.raises(ProtocolError):
        list(path.points())


def test_inet_v4_wire_bytes():
    encoded = inet_to_sql(ipaddress.IPv4Address("127.0.0.1"), 32)
    assert encoded == b"\x02\x20\x00\x04\x7f\x00\x00\x01"


def test_inet_v4_round_trip():
    addr = ipaddress.IPv4Address("192.0.2.10")
    inet = inet_from_sql(inet_to_sql(addr, 24))
    assert inet.addr == addr
    assert inet.netmask == 24


def test_inet_v6_round_trip():
    addr = ipaddress.IPv6Address("2001:db8::1")
    inet = inet_from_sql(inet_to_sql(addr, 64))
    assert inet.addr == addr
    assert inet.netmask == 64


def test_inet_accepts_string_address():
    inet = inet_from_sql(inet_to_sql("198.51.100.7", 32))
    assert inet.addr == ipaddress.IPv4Address("198.51.100.7")


def test_inet_invalid_v4_netmask():
    with pytest.raises(ProtocolError, match="invalid IPv4 netmask"):
        inet_from_sql(bytes([2, 33, 0, 4, 1, 2, 3, 4]))


def test_inet_invalid_v6_netmask():
    with pytest.raises(ProtocolError, match="invalid IPv6 netmask"):
        inet_from_sql(bytes([3, 129, 0, 16]) + bytes(16))


def test_inet_invalid_v4_length():
    with pytest.raises(ProtocolError, match="invalid IPv4 address length"):
        inet_from_sql(bytes([2, 8, 0, 16]) + bytes(16))


def test_inet_invalid_family():
    with pytest.raises(ProtocolError, match="invalid IP family"):
        inet_from_sql(bytes([9, 8, 0, 4, 1, 2, 3, 4]))


def test_inet_trailing_data():
    encoded = inet_to_sql(ipaddress.IPv4Address("192.0.2.1"), 8) + b"\x00"
    with pytest.raises(ProtocolError, match="invalid buffer size"):
        inet_from_sql(encoded)


def test_inet_truncated_address():
    with pytest.raises(ProtocolError):
        inet_from_sql(bytes([2, 8, 0, 4, 1, 2]))