import math
from dataclasses import FrozenInstanceError
from uuid import UUID

import pytest

from zelos.data_type import DataType
from zelos.ipc import (
    IpcMessageWithId,
    TraceEvent,
    TraceEventFieldMetadata,
    TraceEventFieldNamedValues,
    TraceEventSchema,
    TraceSegmentEnd,
    TraceSegmentStart,
)
from zelos.value import Value

SEGMENT_ID = UUID("0196c84d-6eb8-7c46-83b1-e4cac73ba9b6")


def test_field_metadata_is_hashable_and_equal():
    a = TraceEventFieldMetadata("sig", DataType.INT32)
    b = TraceEventFieldMetadata("sig", DataType.INT32, None)
    assert a == b
    assert len({a, b}) == 1


def test_field_metadata_differs_by_unit():
    a = TraceEventFieldMetadata("sig", DataType.INT32, "ns")
    b = TraceEventFieldMetadata("sig", DataType.INT32)
    assert a != b
    assert a.unit == "ns"
    assert b.unit is None


def test_field_metadata_accepts_type_name():
    meta = TraceEventFieldMetadata("t", "timestamp[ns]")
    assert meta.data_type is DataType.TIMESTAMP_NS


def test_field_metadata_rejects_unknown_type():
    with pytest.raises(ValueError):
        TraceEventFieldMetadata("t", "nonsense")


def test_field_metadata_is_frozen():
    meta = TraceEventFieldMetadata("sig", DataType.INT8)
    with pytest.raises(FrozenInstanceError):
        meta.name = "other"
    assert meta.name == "sig"
    assert meta.data_type is DataType.INT8


def test_segment_start_and_end_hold_values():
    start = TraceSegmentStart(time_ns=5, source_name="src")
    end = TraceSegmentEnd(time_ns=7)
    assert (start.time_ns, start.source_name) == (5, "src")
    assert end.time_ns == 7


def test_schema_defaults_to_no_fields():
    assert TraceEventSchema("hello").fields == []


def test_event_fields_keyed_by_name():
    event = TraceEvent(1, "hello", {"sig": Value(DataType.INT32, 10)})
    assert event.fields["sig"] == Value(DataType.INT32, 10)


def test_named_values_lookup_with_nan_key():
    nan = Value(DataType.FLOAT64, math.nan)
    named = TraceEventFieldNamedValues("evt", "field", {nan: "missing"})
    assert named.values[Value(DataType.FLOAT64, math.nan)] == "missing"


def test_message_with_id_carries_message():
    msg = IpcMessageWithId(SEGMENT_ID, "src", TraceSegmentEnd(3))
    assert msg.segment_id == SEGMENT_ID
    assert msg.msg == TraceSegmentEnd(3)
    assert msg == IpcMessageWithId(SEGMENT_ID, "src", TraceSegmentEnd(3))