"""Typed values carried by trace event fields."""

from __future__ import annotations

import base64
import binascii
import math
import struct
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from .data_type import DataType

Payload = Union[int, float, bytes, str, bool]
JsonValue = Union[int, float, str, bool, None]

_I64 = (-(2**63), 2**63 - 1)
_U64 = (0, 2**64 - 1)

_INT_RANGES = {
    DataType.INT8: (-(2**7), 2**7 - 1),
    DataType.INT16: (-(2**15), 2**15 - 1),
    DataType.INT32: (-(2**31), 2**31 - 1),
    DataType.INT64: _I64,
    DataType.UINT8: (0, 2**8 - 1),
    DataType.UINT16: (0, 2**16 - 1),
    DataType.UINT32: (0, 2**32 - 1),
    DataType.UINT64: _U64,
    DataType.TIMESTAMP_NS: _I64,
}

_SIGNED = frozenset({DataType.INT8, DataType.INT16, DataType.INT32, DataType.INT64})
_UNSIGNED = frozenset({DataType.UINT8, DataType.UINT16, DataType.UINT32, DataType.UINT64})
_FLOATS = frozenset({DataType.FLOAT32, DataType.FLOAT64})


def _is_int(obj: object) -> bool:
    return isinstance(obj, int) and not isinstance(obj, bool)


def _is_number(obj: object) -> bool:
    return isinstance(obj, (int, float)) and not isinstance(obj, bool)


def _to_f32(x: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _format_float(x: float, single: bool) -> str:
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if single:
        digits = next(
            text
            for text in (f"{x:.{p}g}" for p in range(1, 18))
            if _to_f32(float(text)) == x
        )
    else:
        digits = repr(x)
    return format(Decimal(digits).normalize(), "f")


@dataclass(frozen=True, eq=False)
class Value:
    """A value tagged with its data type.

    Floats compare by bit pattern, so NaN equals NaN and values can be used as
    dictionary keys.
    """

    kind: DataType
    payload: Payload

    def __post_init__(self) -> None:
        kind = DataType(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "payload", self._checked(kind, self.payload))

    @staticmethod
    def _checked(kind: DataType, payload: object) -> Payload:
        if kind in _INT_RANGES:
            if not _is_int(payload):
                raise TypeError(f"{kind} value must be an int, got {payload!r}")
            low, high = _INT_RANGES[kind]
            if not low <= payload <= high:
                raise ValueError(f"{payload} is out of range for {kind}")
            return payload
        if kind in _FLOATS:
            if not _is_number(payload):
                raise TypeError(f"{kind} value must be a number, got {payload!r}")
            value = float(payload)
            return _to_f32(value) if kind is DataType.FLOAT32 else value
        if kind is DataType.BINARY:
            if not isinstance(payload, (bytes, bytearray, memoryview)):
                raise TypeError(f"binary value must be bytes, got {payload!r}")
            return bytes(payload)
        if kind is DataType.STRING:
            if not isinstance(payload, str):
                raise TypeError(f"string value must be a str, got {payload!r}")
            return payload
        if not isinstance(payload, bool):
            raise TypeError(f"bool value must be a bool, got {payload!r}")
        return payload

    def _key(self) -> tuple:
        if self.kind is DataType.FLOAT32:
            return (self.kind, struct.pack("<f", self.payload))
        if self.kind is DataType.FLOAT64:
            return (self.kind, struct.pack("<d", self.payload))
        return (self.kind, self.payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.kind in _FLOATS:
            return _format_float(self.payload, self.kind is DataType.FLOAT32)
        if self.kind is DataType.BINARY:
            return base64.b64encode(self.payload).decode("ascii")
        if self.kind is DataType.BOOLEAN:
            return "true" if self.payload else "false"
        return str(self.payload)

    def data_type(self) -> DataType:
        """The data type of this value."""
        return self.kind

    def get(self, data_type: DataType) -> Payload | None:
        """The payload if this value has ``data_type``, otherwise None."""
        return self.payload if self.kind is DataType(data_type) else None

    def as_number(self) -> int | None:
        """The payload of an integer value; None for every other type."""
        if self.kind in _SIGNED or self.kind in _UNSIGNED:
            return self.payload
        return None

    @classmethod
    def from_number_as_type(cls, number: object, data_type: DataType) -> Value | None:
        """Build an integer value of ``data_type`` from a JSON number, or None if it does not fit."""
        data_type = DataType(data_type)
        if data_type not in _SIGNED and data_type not in _UNSIGNED:
            return None
        if not _is_int(number):
            return None
        low, high = _INT_RANGES[data_type]
        if not low <= number <= high:
            return None
        return cls(data_type, number)

    @classmethod
    def from_json_as_type(cls, value: JsonValue, data_type: DataType) -> Value:
        """Build a value of ``data_type`` from a decoded JSON value."""
        data_type = DataType(data_type)
        if data_type in _INT_RANGES and _is_number(value):
            if not _is_int(value):
                raise ValueError(f"Unable to read number {value!r} as an integer")
            low, high = _I64 if data_type in _SIGNED or data_type is DataType.TIMESTAMP_NS else _U64
            if not low <= value <= high:
                raise ValueError(f"Unable to read number {value!r} as an integer")
            return cls(data_type, value)
        if data_type in _FLOATS and _is_number(value):
            return cls(data_type, float(value))
        if data_type is DataType.STRING and isinstance(value, str):
            return cls(data_type, value)
        if data_type is DataType.BINARY and isinstance(value, str):
            try:
                decoded = base64.b64decode(value, validate=True)
            except binascii.Error as exc:
                raise ValueError(f"invalid base64 data: {exc}") from None
            return cls(data_type, decoded)
        if data_type is DataType.BOOLEAN and isinstance(value, bool):
            return cls(data_type, value)
        raise ValueError(f"Unsupported data type conversion: {value!r} to {data_type}")

    def to_json(self) -> JsonValue:
        """This value as a JSON-compatible Python object."""
        if self.kind in _FLOATS:
            if not math.isfinite(self.payload):
                raise ValueError(f"Unable to convert {self.kind} {self.payload} to JSON")
            return self.payload
        if self.kind is DataType.BINARY:
            return base64.b64encode(self.payload).decode("ascii")
        return self.payload