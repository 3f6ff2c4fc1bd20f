import struct

import pytest

from pgproto.containers import (
    Array,
    ArrayDimension,
    BoundKind,
    Range,
    RangeBound,
    Varbit,
    array_from_sql,
    array_to_sql,
    empty_range_to_sql,
    hstore_from_sql,
    hstore_to_sql,
    range_from_sql,
    range_to_sql,
    varbit_from_sql,
    varbit_to_sql,
)
from pgproto.core import ProtocolError


def _identity(value):
    return value


DIMENSIONS = [ArrayDimension(1, 10), ArrayDimension(2, 0)]


def test_hstore_round_trip():
    values = {"hello": "world", "hola": None}
    buf = hstore_to_sql(values)
    assert dict(hstore_from_sql(buf)) == values


def test_hstore_from_pairs_keeps_order():
    pairs = [("b", "2"), ("a", None)]
    assert list(hstore_from_sql(hstore_to_sql(pairs))) == pairs


def test_hstore_negative_count():
    with pytest.raises(ProtocolError, match="invalid entry count"):
        hstore_from_sql(struct.pack(">i", -1))


def test_hstore_trailing_data():
    buf = hstore_to_sql({}) + b"x"
    with pytest.raises(ProtocolError, match="invalid buffer size"):
        list(hstore_from_sql(buf))


def test_hstore_negative_key_length():
    buf = struct.pack(">ii", 1, -5)
    with pytest.raises(ProtocolError, match="invalid key length"):
        list(hstore_from_sql(buf))


def test_varbit_round_trip():
    bits = bytes([0b0010_1011, 0b0000_1111])
    buf = varbit_to_sql(12, bits)
    out = varbit_from_sql(buf)
    assert out == Varbit(12, bits)
    assert len(out) == 12


def test_varbit_negative_length():
    with pytest.raises(ProtocolError, match="varbit < 0"):
        varbit_from_sql(struct.pack(">i", -1))


def test_varbit_length_mismatch():
    with pytest.raises(ProtocolError, match="varbit mismatch"):
        varbit_from_sql(struct.pack(">i", 12) + b"\x01")


def test_array_round_trip_with_nulls():
    values = [None, b"hello"]
    buf = array_to_sql(DIMENSIONS, 10, values, _identity)
    array = array_from_sql(buf)
    assert array.has_nulls is True
    assert array.element_type == 10
    assert list(array.dimensions()) == DIMENSIONS
    assert list(array.values()) == values


def test_non_null_array():
    values = [b"hola", b"hello"]
    buf = array_to_sql(DIMENSIONS, 10, values, _identity)
    array = array_from_sql(buf)
    assert isinstance(array, Array)
    assert array.has_nulls is False
    assert array.element_type == 10
    assert list(array.dimensions()) == DIMENSIONS
    assert list(array.values()) == values


def test_zero_dimension_array_has_no_values():
    array = array_from_sql(array_to_sql([], 23, [], _identity))
    assert list(array.dimensions()) == []
    assert list(array.values()) == []


def test_array_negative_dimension_count():
    with pytest.raises(ProtocolError, match="invalid dimension count"):
        array_from_sql(struct.pack(">iiI", -1, 0, 10))


def test_array_negative_dimension_size():
    buf = struct.pack(">iiIii", 1, 0, 10, -1, 0)
    with pytest.raises(ProtocolError, match="invalid dimension size"):
        array_from_sql(buf)


def test_array_too_many_elements():
    buf = struct.pack(">iiIiiii", 2, 0, 10, 2**30, 0, 4, 0)
    with pytest.raises(ProtocolError, match="too many array elements"):
        array_from_sql(buf)


def test_array_value_too_short():
    buf = struct.pack(">iiIiii", 1, 0, 10, 1, 1, 10) + b"abc"
    with pytest.raises(ProtocolError, match="invalid value length"):
        list(array_from_sql(buf).values())


def test_empty_range_encoding():
    assert empty_range_to_sql() == b"\x01"
    result = range_from_sql(empty_range_to_sql())
    assert result == Range()
    assert result.is_empty


def test_range_encoding_inclusive_exclusive():
    lower = RangeBound.inclusive(b"\x00\x00\x00\x01")
    upper = RangeBound.exclusive(b"\x00\x00\x00\x05")
    buf = range_to_sql(lower, upper)
    assert buf == (
        b"\x02"
        + b"\x00\x00\x00\x04\x00\x00\x00\x01"
        + b"\x00\x00\x00\x04\x00\x00\x00\x05"
    )
    assert range_from_sql(buf) == Range(lower, upper)


def test_range_unbounded_sides():
    buf = range_to_sql(RangeBound.unbounded(), RangeBound.unbounded())
    assert buf == bytes([0b0001_1000])
    result = range_from_sql(buf)
    assert result.lower.kind is BoundKind.UNBOUNDED
    assert result.upper.kind is BoundKind.UNBOUNDED
    assert not result.is_empty


def test_range_null_bound():
    buf = range_to_sql(RangeBound.inclusive(None), RangeBound.unbounded())
    assert buf == b"\x12" + b"\xff\xff\xff\xff"
    assert range_from_sql(buf).lower == RangeBound.inclusive(None)


def test_empty_range_with_trailing_data():
    with pytest.raises(ProtocolError, match="invalid message size"):
        range_from_sql(b"\x01\x00")


def test_range_bound_too_short():
    with pytest.raises(ProtocolError, match="invalid message size"):
        range_from_sql(b"\x10" + struct.pack(">i", 8) + b"\x00")