import struct

import pytest

from pgproto.core import ProtocolError, check_i16, check_i32, write_nullable


def test_check_i16_accepts_max():
    assert check_i16(32767) == 32767


def test_check_i16_rejects_overflow():
    with pytest.raises(ProtocolError, match="value too large to transmit"):
        check_i16(32768)


def test_check_i32_accepts_max():
    assert check_i32(2**31 - 1) == 2**31 - 1


def test_check_i32_rejects_overflow():
    with pytest.raises(ProtocolError):
        check_i32(2**31)


def test_protocol_error_is_value_error():
    with pytest.raises(ValueError):
        check_i16(10**6)


def test_write_nullable_null():
    assert write_nullable(None) == b"\xff\xff\xff\xff"


def test_write_nullable_value_round_trip():
    data = b"hello"
    out = write_nullable(data)
    (length,) = struct.unpack(">i", out[:4])
    assert length == len(data)
    assert out[4:] == data


def test_write_nullable_empty_is_not_null():
    out = write_nullable(b"")
    assert struct.unpack(">i", out) == (0,)