import base64
import math

import pytest

from zelos.data_type import DataType
from zelos.value import Value


def test_nan_equals_nan():
    nan64 = Value(DataType.FLOAT64, math.nan)
    nan32 = Value(DataType.FLOAT32, math.nan)
    assert math.isnan(nan64.get(DataType.FLOAT64))
    assert math.isnan(nan32.get(DataType.FLOAT32))
    assert nan64 == Value(DataType.FLOAT64, math.nan)
    assert nan32 == Value(DataType.FLOAT32, math.nan)


def test_signed_zeros_differ():
    assert not Value(DataType.FLOAT64, 0.0) == Value(DataType.FLOAT64, -0.0)


def test_different_kinds_are_not_equal():
    assert not Value(DataType.INT8, 1) == Value(DataType.INT16, 1)
    assert not Value(DataType.UINT64, 1) == Value(DataType.TIMESTAMP_NS, 1)


def test_values_work_as_dict_keys():
    table = {Value(DataType.FLOAT64, math.nan): "nan", Value(DataType.UINT8, 3): "three"}
    assert table[Value(DataType.FLOAT64, math.nan)] == "nan"
    assert table[Value(DataType.UINT8, 3)] == "three"
    assert Value(DataType.INT8, 3) not in table


@pytest.mark.parametrize(
    "kind, payload",
    [
        (DataType.INT8, 128),
        (DataType.INT8, -129),
        (DataType.UINT8, 256),
        (DataType.UINT32, -1),
        (DataType.INT64, 2**63),
        (DataType.UINT64, 2**64),
    ],
)
def test_out_of_range_raises(kind, payload):
    with pytest.raises(ValueError):
        Value(kind, payload)


@pytest.mark.parametrize(
    "kind, payload",
    [
        (DataType.INT32, 1.5),
        (DataType.INT32, True),
        (DataType.STRING, b"x"),
        (DataType.BINARY, "x"),
        (DataType.BOOLEAN, 1),
        (DataType.FLOAT64, "1.0"),
    ],
)
def test_wrong_payload_type_raises(kind, payload):
    with pytest.raises(TypeError):
        Value(kind, payload)


def test_kind_accepts_serialized_name():
    assert Value("int32", 7) == Value(DataType.INT32, 7)


def test_data_type_and_get():
    value = Value(DataType.INT32, 10)
    assert value.data_type() is DataType.INT32
    assert value.get(DataType.INT32) == 10
    assert value.get(DataType.INT64) is None


def test_float32_payload_is_rounded():
    value = Value(DataType.FLOAT32, 0.1)
    assert value.get(DataType.FLOAT32) != 0.1
    assert Value(DataType.FLOAT32, value.get(DataType.FLOAT32)) == value


def test_float32_overflow_saturates():
    assert Value(DataType.FLOAT32, 1e300).get(DataType.FLOAT32) == math.inf


def test_display():
    assert str(Value(DataType.FLOAT32, 0.1)) == "0.1"
    assert str(Value(DataType.BOOLEAN, True)) == "true"
    assert str(Value(DataType.FLOAT64, 1.0)) == "1"
    assert str(Value(DataType.INT32, -5)) == "-5"
    assert str(Value(DataType.STRING, "abc")) == "abc"
    assert str(Value(DataType.BINARY, b"hello")) == base64.b64encode(b"hello").decode()


def test_as_number():
    assert Value(DataType.UINT16, 42).as_number() == 42
    assert Value(DataType.INT64, -3).as_number() == -3
    assert Value(DataType.FLOAT64, 1.0).as_number() is None
    assert Value(DataType.TIMESTAMP_NS, 5).as_number() is None
    assert Value(DataType.BOOLEAN, True).as_number() is None


@pytest.mark.parametrize(
    "number, kind",
    [
        (300, DataType.INT8),
        (-1, DataType.UINT32),
        (1.5, DataType.INT32),
        (5, DataType.FLOAT64),
        (5, DataType.TIMESTAMP_NS),
        (True, DataType.UINT8),
    ],
)
def test_from_number_as_type_rejects(number, kind):
    assert Value.from_number_as_type(number, kind) is None


def test_from_number_as_type_accepts():
    assert Value.from_number_as_type(200, DataType.UINT8) == Value(DataType.UINT8, 200)
    assert Value.from_number_as_type(-128, DataType.INT8) == Value(DataType.INT8, -128)


def test_from_number_inverts_as_number():
    value = Value(DataType.UINT64, 2**64 - 1)
    assert Value.from_number_as_type(value.as_number(), DataType.UINT64) == value


@pytest.mark.parametrize(
    "value",
    [
        Value(DataType.INT8, -7),
        Value(DataType.INT16, 300),
        Value(DataType.INT32, -70000),
        Value(DataType.INT64, -(2**63)),
        Value(DataType.UINT8, 255),
        Value(DataType.UINT16, 65535),
        Value(DataType.UINT32, 2**32 - 1),
        Value(DataType.UINT64, 2**64 - 1),
        Value(DataType.FLOAT32, 0.1),
        Value(DataType.FLOAT64, -2.5),
        Value(DataType.TIMESTAMP_NS, 1_700_000_000_000_000_000),
        Value(DataType.BINARY, b"\x00\xffdata"),
        Value(DataType.STRING, "hello"),
        Value(DataType.BOOLEAN, False),
    ],
)
def test_json_round_trip(value):
    assert Value.from_json_as_type(value.to_json(), value.data_type()) == value


def test_binary_to_json_is_base64():
    assert Value(DataType.BINARY, b"hello").to_json() == base64.b64encode(b"hello").decode()


def test_float_from_json_accepts_int():
    assert Value.from_json_as_type(3, DataType.FLOAT64) == Value(DataType.FLOAT64, 3.0)


@pytest.mark.parametrize(
    "json_value, kind",
    [
        ("1", DataType.INT32),
        (True, DataType.INT32),
        (1.5, DataType.INT64),
        (300, DataType.INT8),
        (-1, DataType.UINT64),
        (1, DataType.STRING),
        (1, DataType.BOOLEAN),
        ("true", DataType.BOOLEAN),
        ("not base64!", DataType.BINARY),
        (None, DataType.STRING),
    ],
)
def test_from_json_as_type_errors(json_value, kind):
    with pytest.raises(ValueError):
        Value.from_json_as_type(json_value, kind)


@pytest.mark.parametrize("payload", [math.nan, math.inf, -math.inf])
def test_to_json_rejects_non_finite(payload):
    with pytest.raises(ValueError):
        Value(DataType.FLOAT64, payload).to_json()